"""SQLAlchemy models for the spendtrack database."""

from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Numeric,
    Boolean,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class Account(Base):
    """Account model with its cached current balance."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True)
    position = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    account_type = Column(String(16), nullable=False)
    starting_balance = Column(Numeric(12, 2), nullable=False)
    current_balance = Column(Numeric(12, 2), nullable=False)
    icon = Column(String, nullable=True)
    color = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)

    # Relationships
    transactions = relationship(
        "Transaction",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="Transaction.position",
    )


class Transaction(Base):
    """Transaction model.

    ``position`` keeps insertion order within the owning account.
    """

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    type = Column(String(16), nullable=False)
    date = Column(DateTime, nullable=False)
    payee = Column(String, nullable=False)
    category = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    target_account_id = Column(String(36), nullable=True)
    is_transfer_source = Column(Boolean, nullable=True)
    linked_transaction_id = Column(String(36), nullable=True)

    # Relationships
    account = relationship("Account", back_populates="transactions")


class RecurringPayment(Base):
    """Recurring payment definition model.

    ``account_id`` is not a foreign key: a definition may outlive
    its account and then fails at materialization time.
    """

    __tablename__ = "recurring_payments"

    id = Column(String(36), primary_key=True)
    position = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    account_id = Column(String(36), nullable=False, index=True)
    frequency = Column(String(16), nullable=False)
    next_due_date = Column(DateTime, nullable=False)
    payee = Column(String, nullable=False)
    type = Column(String(16), nullable=False)
    category = Column(String, nullable=False)
    category_icon = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_processed_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory.

    SQLite connections are shared across threads; callers serialize access
    through ``SQLAlchemyDatabase.unit_of_work``.
    """
    engine_kwargs = {"echo": False}
    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **engine_kwargs)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
