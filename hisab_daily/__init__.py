"""HisabDaily: a daily deed counter with trends and an Islamic deed checker."""

__version__ = "0.3.0"
