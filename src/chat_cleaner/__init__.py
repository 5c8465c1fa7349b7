"""
Бот-модератор групп: учёт участников, массовая чистка, отложенные рассылки.
"""

__version__ = "0.1.0"
