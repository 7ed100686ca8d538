from fastapi import Depends, Request

from framework.repository.manager import RepositoryManager
from apps.auth.service import AuthService, VerificationService
from apps.container import AppContainer
from apps.users.service import UserService


def get_container(request: Request) -> AppContainer:
    return request.app.state.container

def get_repository_manager(container: AppContainer = Depends(get_container)) -> RepositoryManager:
    return container.repositories

def get_user_service(manager: RepositoryManager = Depends(get_repository_manager)) -> UserService:
    """Dependency: create UserService."""
    return UserService(manager)

def get_verification_service(container: AppContainer = Depends(get_container)) -> VerificationService:
    """Dependency: create VerificationService."""
    return VerificationService(container.repositories, container.code_store)

def get_auth_service(
    container: AppContainer = Depends(get_container),
    user_service: UserService = Depends(get_user_service),
) -> AuthService:
    """Dependency: create AuthService."""
    return AuthService(user_service, container.oauth_providers)
