# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import tempfile
from pathlib import Path
from unittest import TestCase

from assertpy import assert_that
from marshmallow import ValidationError

from svcext import ExtensionSettings, SettingsException, constants, load_settings
from svcext.settings import parse_settings


class SettingsTestCase(TestCase):
    def test_defaults(self) -> None:
        settings = load_settings()
        assert_that(settings.pool_size).is_equal_to(constants.EXTENSION_ID_POOL_SIZE)
        assert_that(settings.id_template).is_equal_to(constants.EXTENSION_ID_TEMPLATE)
        assert_that(settings.default_slot).is_equal_to(
            constants.DEPLOYMENT_SLOT_PRODUCTION
        )
        assert_that(settings.change_mode).is_equal_to(constants.CHANGE_MODE_AUTO)
        assert_that(settings.treat_warnings_as_error).is_false()

    def test_parse_with_root_key(self) -> None:
        settings = parse_settings(
            {"extension": {"pool_size": 3, "default_slot": "Staging"}}
        )
        assert_that(settings.pool_size).is_equal_to(3)
        assert_that(settings.default_slot).is_equal_to("Staging")
        assert_that(settings.change_mode).is_equal_to(constants.CHANGE_MODE_AUTO)

    def test_parse_top_level(self) -> None:
        settings = parse_settings(
            {"change_mode": "Manual", "treat_warnings_as_error": True}
        )
        assert_that(settings.change_mode).is_equal_to(constants.CHANGE_MODE_MANUAL)
        assert_that(settings.treat_warnings_as_error).is_true()

    def test_parse_empty(self) -> None:
        assert_that(parse_settings(None)).is_equal_to(ExtensionSettings())
        assert_that(parse_settings({"extension": None})).is_equal_to(
            ExtensionSettings()
        )

    def test_invalid_values(self) -> None:
        with self.assertRaises(ValidationError):
            parse_settings({"pool_size": 0})
        with self.assertRaises(ValidationError):
            parse_settings({"default_slot": "Preview"})
        with self.assertRaises(ValidationError):
            parse_settings({"change_mode": "Later"})

    def test_invalid_template(self) -> None:
        with self.assertRaises(SettingsException):
            parse_settings({"id_template": "{scope}-{type}-{slot}"})

    def test_not_mapping(self) -> None:
        with self.assertRaises(SettingsException):
            parse_settings(["pool_size"])
        with self.assertRaises(SettingsException):
            parse_settings({"extension": "pool_size"})

    def test_load_file(self) -> None:
        with tempfile.TemporaryDirectory() as folder:
            path = Path(folder) / "settings.yml"
            path.write_text(
                "extension:\n"
                "  pool_size: 4\n"
                "  id_template: '{scope}_{type}_{slot}_{index}'\n"
                "  default_role_label: All\n"
            )
            settings = load_settings(path)
        assert_that(settings.pool_size).is_equal_to(4)
        assert_that(settings.default_role_label).is_equal_to("All")

    def test_missing_file(self) -> None:
        with self.assertRaises(SettingsException):
            load_settings("not-existing-settings.yml")
