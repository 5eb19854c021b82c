"""
Инициализация пакета knowledge_bot
"""

__version__ = "0.1.0"
