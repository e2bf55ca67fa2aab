"""gNMI path, value and tree utilities with in-memory versioned configuration stores."""

__version__ = "0.1.0"