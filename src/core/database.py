"""
Database operations for the expense tracker.
Handles SQLite database initialization, account storage and per-user expense CRUD.
"""

import uuid
import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple, Iterable

from .models import Expense, ExpenseCreate, ExpenseUpdate, User, UserCreate

logger = logging.getLogger(__name__)

class DatabaseManager:
    """Manages all database operations for accounts and expenses.

    Every expense query is scoped to the owning user, so one user can never
    read or change another user's rows.
    """

    def __init__(self, db_path: str = "expenses.db"):
        """Initialize database manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self.logger = logger

    @contextmanager
    def get_connection(self):
        """Context manager for database connections with automatic cleanup."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row  # Enable column access by name
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        except Exception as e:
            if conn:
                conn.rollback()
            self.logger.error(f"Database error: {str(e)}")
            raise
        finally:
            if conn:
                conn.close()

    def initialize_database(self) -> None:
        """Initialize database with proper schema and indexes."""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS users (
                        id TEXT PRIMARY KEY,
                        email TEXT NOT NULL UNIQUE,
                        name TEXT,
                        mobile TEXT,
                        password_hash TEXT NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS expenses (
                        id TEXT PRIMARY KEY,
                        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                        name TEXT NOT NULL,
                        category TEXT NOT NULL DEFAULT 'food',
                        icon TEXT,
                        amount DECIMAL(12,2) NOT NULL CHECK (amount >= 0),
                        occurred_on TIMESTAMP NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                cursor.execute("CREATE INDEX IF NOT EXISTS idx_expenses_user ON expenses(user_id)")
                cursor.execute("CREATE INDEX IF NOT EXISTS idx_expenses_user_date ON expenses(user_id, occurred_on)")
                cursor.execute("CREATE INDEX IF NOT EXISTS idx_expenses_category ON expenses(category)")

                cursor.execute("""
                    CREATE TRIGGER IF NOT EXISTS update_expenses_updated_at
                    AFTER UPDATE ON expenses
                    BEGIN
                        UPDATE expenses SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
                    END
                """)

                conn.commit()
                self.logger.info("Database initialized successfully")

        except Exception as e:
            self.logger.error(f"Failed to initialize database: {str(e)}")
            raise

    def create_user(self, user: UserCreate, password_hash: str) -> User:
        """Store a new account.

        Args:
            user: Sign-up data
            password_hash: Already hashed password

        Returns:
            Created User

        Raises:
            sqlite3.IntegrityError: If the email is already registered
        """
        user_id = str(uuid.uuid4())
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO users (id, email, name, mobile, password_hash)
                    VALUES (?, ?, ?, ?, ?)
                """, (user_id, user.email, user.name, user.mobile, password_hash))
                conn.commit()

                self.logger.info(f"Created user {user_id}")

        except Exception as e:
            self.logger.error(f"Failed to create user: {str(e)}")
            raise

        return self.get_user(user_id)

    def get_user(self, user_id: str) -> Optional[User]:
        """Get an account by ID."""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,))
                row = cursor.fetchone()
                return self._row_to_user(row) if row else None

        except Exception as e:
            self.logger.error(f"Failed to get user {user_id}: {str(e)}")
            raise

    def get_user_by_email(self, email: str) -> Optional[Tuple[User, str]]:
        """Get an account and its password hash by email.

        Args:
            email: Login email (case-insensitive)

        Returns:
            (User, password_hash) if found, None otherwise
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT * FROM users WHERE email = ?", (email.strip().lower(),))
                row = cursor.fetchone()

                if row:
                    return self._row_to_user(row), row["password_hash"]
                return None

        except Exception as e:
            self.logger.error(f"Failed to look up user by email: {str(e)}")
            raise

    def add_expense(self, owner_id: str, expense: ExpenseCreate) -> Expense:
        """Add a new expense for a user.

        Args:
            owner_id: ID of the owning user
            expense: Expense data to add

        Returns:
            The stored expense
        """
        expense_id = str(uuid.uuid4())
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()

                cursor.execute("""
                    INSERT INTO expenses (id, user_id, name, category, icon, amount, occurred_on)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    expense_id,
                    owner_id,
                    expense.name,
                    expense.category,
                    expense.icon,
                    float(expense.amount),
                    expense.occurred_on.isoformat()
                ))
                conn.commit()

                self.logger.info(f"Added expense {expense_id} for user {owner_id}")

        except Exception as e:
            self.logger.error(f"Failed to add expense: {str(e)}")
            raise

        return self.get_expense(owner_id, expense_id)

    def get_expense(self, owner_id: str, expense_id: str) -> Optional[Expense]:
        """Get one of a user's expenses by ID.

        Args:
            owner_id: ID of the owning user
            expense_id: ID of the expense to retrieve

        Returns:
            Expense if found and owned by the user, None otherwise
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT * FROM expenses WHERE id = ? AND user_id = ?",
                    (expense_id, owner_id)
                )
                row = cursor.fetchone()

                if row:
                    return self._row_to_expense(row)
                return None

        except Exception as e:
            self.logger.error(f"Failed to get expense {expense_id}: {str(e)}")
            raise

    def get_expenses(self, owner_id: str) -> List[Expense]:
        """Get all of a user's expenses, newest first.

        Args:
            owner_id: ID of the owning user

        Returns:
            List of Expense objects
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    SELECT * FROM expenses
                    WHERE user_id = ?
                    ORDER BY occurred_on DESC, created_at DESC
                """, (owner_id,))
                rows = cursor.fetchall()

                return [self._row_to_expense(row) for row in rows]

        except Exception as e:
            self.logger.error(f"Failed to get expenses for user {owner_id}: {str(e)}")
            raise

    def update_expense(self, owner_id: str, expense_id: str, updates: ExpenseUpdate) -> bool:
        """Update one of a user's expenses.

        The merged record is validated again, so moving an expense out of
        the travel category drops its icon.

        Args:
            owner_id: ID of the owning user
            expense_id: ID of the expense to update
            updates: Fields to update

        Returns:
            True if update was successful, False if expense not found
        """
        update_dict = updates.model_dump(exclude_unset=True)

        existing = self.get_expense(owner_id, expense_id)
        if existing is None:
            self.logger.warning(f"Expense {expense_id} not found for update")
            return False

        if not update_dict:
            return True  # No updates to make

        merged = ExpenseCreate(**{**existing.to_create().model_dump(), **update_dict})

        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    UPDATE expenses
                    SET name = ?, category = ?, icon = ?, amount = ?, occurred_on = ?
                    WHERE id = ? AND user_id = ?
                """, (
                    merged.name,
                    merged.category,
                    merged.icon,
                    float(merged.amount),
                    merged.occurred_on.isoformat(),
                    expense_id,
                    owner_id
                ))
                rows_affected = cursor.rowcount
                conn.commit()

                if rows_affected > 0:
                    self.logger.info(f"Updated expense {expense_id}")
                    return True
                else:
                    self.logger.warning(f"Expense {expense_id} not found for update")
                    return False

        except Exception as e:
            self.logger.error(f"Failed to update expense {expense_id}: {str(e)}")
            raise

    def delete_expense(self, owner_id: str, expense_id: str) -> bool:
        """Delete one of a user's expenses.

        Args:
            owner_id: ID of the owning user
            expense_id: ID of the expense to delete

        Returns:
            True if deletion was successful, False if expense not found
        """
        return self.delete_expenses(owner_id, [expense_id]) > 0

    def delete_expenses(self, owner_id: str, expense_ids: Iterable[str]) -> int:
        """Delete several of a user's expenses at once.

        Args:
            owner_id: ID of the owning user
            expense_ids: IDs of the expenses to delete

        Returns:
            Number of deleted expenses
        """
        ids = list(dict.fromkeys(expense_ids))
        if not ids:
            return 0

        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                placeholders = ", ".join("?" for _ in ids)
                cursor.execute(
                    f"DELETE FROM expenses WHERE user_id = ? AND id IN ({placeholders})",
                    [owner_id, *ids]
                )
                rows_affected = cursor.rowcount
                conn.commit()

                if rows_affected < len(ids):
                    self.logger.warning(
                        f"Deleted {rows_affected} of {len(ids)} expenses for user {owner_id}"
                    )
                else:
                    self.logger.info(f"Deleted {rows_affected} expense(s) for user {owner_id}")
                return rows_affected

        except Exception as e:
            self.logger.error(f"Failed to delete expenses: {str(e)}")
            raise

    def duplicate_expense(self, owner_id: str, expense_id: str,
                          now: Optional[datetime] = None) -> Optional[Expense]:
        """Copy an expense under a new ID, dated now.

        Args:
            owner_id: ID of the owning user
            expense_id: ID of the expense to copy
            now: Date of the copy, defaults to the current time

        Returns:
            The new expense, or None if the source was not found
        """
        source = self.get_expense(owner_id, expense_id)
        if source is None:
            self.logger.warning(f"Expense {expense_id} not found for duplication")
            return None

        copy = source.to_create().model_copy(update={"occurred_on": now or datetime.now()})
        return self.add_expense(owner_id, copy)

    def get_expense_count(self, owner_id: str) -> int:
        """Get total count of a user's expenses."""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) FROM expenses WHERE user_id = ?", (owner_id,))
                return cursor.fetchone()[0]

        except Exception as e:
            self.logger.error(f"Failed to get expense count: {str(e)}")
            raise

    def _row_to_expense(self, row: sqlite3.Row) -> Expense:
        """Convert database row to Expense object.

        Args:
            row: SQLite row object

        Returns:
            Expense object
        """
        return Expense(
            id=row["id"],
            owner_id=row["user_id"],
            name=row["name"],
            category=row["category"],
            icon=row["icon"],
            amount=Decimal(str(row["amount"])),
            occurred_on=datetime.fromisoformat(row["occurred_on"]),
            created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
            updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None
        )

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            mobile=row["mobile"],
            created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None
        )
