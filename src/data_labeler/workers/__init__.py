"""Background workers for Data Labeler."""
