"""Daily Expense -- personal expense tracking with day, week and category reports."""

__version__ = "1.0.0"
