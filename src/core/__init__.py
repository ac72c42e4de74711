"""
Core functionality modules for expense tracking.
"""

from .models import Expense, ExpenseCreate, ExpenseUpdate, ReceiptGuess, DateFilterSelection, FilterType
from .config import AppConfig, ConfigError, load_config
from .database import DatabaseManager
from .auth import AuthService, AuthError
from .parsing import ReceiptInterpreter
from .algorithms import FilterEngine, AnalyticsEngine
from .ocr import ReceiptScanner, OcrError, build_ocr_engine

__all__ = [
    'Expense',
    'ExpenseCreate',
    'ExpenseUpdate',
    'ReceiptGuess',
    'DateFilterSelection',
    'FilterType',
    'AppConfig',
    'ConfigError',
    'load_config',
    'DatabaseManager',
    'AuthService',
    'AuthError',
    'ReceiptInterpreter',
    'FilterEngine',
    'AnalyticsEngine',
    'ReceiptScanner',
    'OcrError',
    'build_ocr_engine'
]
