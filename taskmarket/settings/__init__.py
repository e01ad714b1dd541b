import os

env = os.environ.get('DJANGO_ENV')

if env == 'prod':
    from .prod import *
elif env == 'test':
    from .test import *
else:
    from .dev import *
