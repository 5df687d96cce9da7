"""
auth — User authentication module.

Provides:
  • Credential store (SQLAlchemy, unique username / email)
  • Password hashing (bcrypt) and password policy
  • Signed token creation & verification
  • Registration / login flows and their API routes
  • ``get_current_claims`` FastAPI dependency
"""
