import strawberry
from typing import Optional
from .types import UserType


def current_user(info):
    user = info.context.request.user
    if not user.is_authenticated:
        raise PermissionError('Authentication required')
    return user


@strawberry.type
class AuthQueries:

    @strawberry.field
    def me(self, info: strawberry.Info) -> Optional[UserType]:
        user = info.context.request.user
        return user if user.is_authenticated else None
