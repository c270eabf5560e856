from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
import streamlit as st
from config import SQLALCHEMY_URL


Base = declarative_base()

@st.cache_resource
def get_engine():
    """Process-wide singleton engine (lazy)"""
    options = dict(echo=False, future=True, pool_pre_ping=True)
    if SQLALCHEMY_URL.startswith("mssql"):
        options.update(
            pool_recycle=3600,
            pool_size=5,
            max_overflow=10,
            fast_executemany=True,
        )
    return create_engine(SQLALCHEMY_URL, **options)

@st.cache_resource
def get_session_factory():
    """Process-wide singleton session factory (lazy)."""
    return sessionmaker(bind=get_engine(), autoflush=False, autocommit=False, future=True, expire_on_commit=False)
