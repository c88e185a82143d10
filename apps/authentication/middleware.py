from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError


class GraphQLJWTMiddleware:
    """Resolve a Bearer token into ``request.user`` for the GraphQL endpoint.

    DRF views authenticate on their own; GraphQL is a plain Django view, so
    it gets the user here. Invalid tokens leave the anonymous user in place.
    """

    graphql_prefix = '/graphql/'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path.startswith(self.graphql_prefix):
            raw_token = self.get_token_from_request(request)
            if raw_token is not None:
                auth = JWTAuthentication()
                try:
                    validated_token = auth.get_validated_token(raw_token)
                    request.user = auth.get_user(validated_token)
                except (InvalidToken, TokenError):
                    pass

        return self.get_response(request)

    def get_token_from_request(self, request):
        header = request.META.get('HTTP_AUTHORIZATION')
        if header and header.startswith('Bearer '):
            return header.split(' ')[1].encode('utf-8')
        return None
