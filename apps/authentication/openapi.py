from drf_spectacular.extensions import OpenApiAuthenticationExtension


class SessionAuthenticationScheme(OpenApiAuthenticationExtension):
    target_class = 'apps.authentication.authentication.SessionAuthentication'
    name = 'SessionAuth'

    def get_security_definition(self, auto_schema):
        return {
            'type': 'apiKey',
            'in': 'cookie',
            'name': 'sessionid',
        }


class CsrfExemptSessionAuthenticationScheme(SessionAuthenticationScheme):
    target_class = 'apps.authentication.authentication.CsrfExemptSessionAuthentication'
