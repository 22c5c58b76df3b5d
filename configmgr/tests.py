from django.test import TestCase, override_settings

from .lookup import get_int_setting
from .models import SystemSetting


class GetIntSettingTests(TestCase):
    @override_settings(MARKETPLACE={"ORDER_RATE_LIMIT": 7})
    def test_falls_back_to_django_settings(self):
        self.assertEqual(get_int_setting("ORDER_RATE_LIMIT", 5), 7)

    @override_settings(MARKETPLACE={})
    def test_falls_back_to_default(self):
        self.assertEqual(get_int_setting("ORDER_RATE_LIMIT", 5), 5)

    def test_row_overrides(self):
        SystemSetting.objects.create(key="ORDER_RATE_LIMIT", value=" 2 ")
        self.assertEqual(get_int_setting("ORDER_RATE_LIMIT", 5), 2)

    @override_settings(MARKETPLACE={"ORDER_RATE_LIMIT": 5})
    def test_bad_row_value_is_ignored(self):
        SystemSetting.objects.create(key="ORDER_RATE_LIMIT", value="lots")
        with self.assertLogs("configmgr.lookup", level="WARNING"):
            self.assertEqual(get_int_setting("ORDER_RATE_LIMIT", 3), 5)
