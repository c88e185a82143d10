import strawberry_django
from strawberry import auto
from apps.authentication.models import User


@strawberry_django.type(User)
class UserType:
    id: auto
    username: auto
    email: auto
    role: auto
    gender: auto
    date_joined: auto
