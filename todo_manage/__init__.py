"""Daily lifecycle job for todo records stored in DynamoDB."""

__version__ = "0.1.0"
