import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "scorebook.test_settings")
