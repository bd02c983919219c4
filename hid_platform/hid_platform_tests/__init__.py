"""
hid_service package

This package contains the backend logic for the health identity service.
It includes:

- FastAPI application factory (`main.py`) and routers (`routes/`)
- SQLAlchemy models and database integration (`models.py`, `db.py`)
- Credential primitives: password hashing and JWT issuing (`auth.py`),
  one-time passwords (`otp.py`), persistence (`store.py`)
- Credential orchestration (`service.py`)
- Pydantic schemas (`schemas.py`)

Used as the entry point for the HID backend service.
"""
