# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the business logic (errors come from app/exceptions.py):
# - models/: Pydantic schemas for videos, profiles and operation results
# - ports.py: Interfaces for the identity, blob and metadata collaborators
# - services/: Upload pipeline, catalog reader and the Supabase adapters
#
# Services receive their collaborators through their constructors and never
# reach for a global client. This keeps the logic testable and reusable.
# =============================================================================
