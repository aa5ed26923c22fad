from django.apps import AppConfig


class RegFormConfig(AppConfig):
    name = "regform"
    verbose_name = "Registration form"

    def ready(self):
        # Settings are fully loaded now; pick up REGFORM_CONFIG overrides
        from regform.config import config

        config.reset()
