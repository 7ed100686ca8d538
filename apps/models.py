"""
Model registration for migrations: import all models that should be migrated by Alembic here.
"""
from apps.users.models import DeliveryData, SocialLink, User, Verification

__all__ = ["User", "Verification", "SocialLink", "DeliveryData"]
