"""
Brand Snapshot Backend Package.

FastAPI service comparing an organization's performance metric across two
months or quarters and correlating the change with behavioral coaching
delivered one period earlier.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, and dependencies
    - models: Pydantic schemas and enums
    - services: Snapshot engine, record fetching and snapshot storage
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
