from django.utils import translation

from market.i18n import SUPPORTED_LOCALES, DEFAULT_LOCALE


class AcceptLanguageLocaleMiddleware:
    """Active la langue issue de Accept-Language (fr, en, de, ar ; fr par défaut)."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        locale = self.get_locale(request)
        translation.activate(locale)
        request.LANGUAGE_CODE = locale
        response = self.get_response(request)
        response.headers.setdefault('Content-Language', locale)
        return response

    def get_locale(self, request):
        header = request.META.get('HTTP_ACCEPT_LANGUAGE', '')
        for part in header.split(','):
            code = part.split(';')[0].strip().lower().split('-')[0]
            if code in SUPPORTED_LOCALES:
                return code
        return DEFAULT_LOCALE
