# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from typing import List
from unittest import TestCase, mock

from assertpy import assert_that

from selftests.test_store import DIAGNOSTICS, RDP, generate_record, generate_store
from svcext import (
    DuplicateIdError,
    ExtensionConfiguration,
    ExtensionInput,
    ExtensionInstaller,
    ExtensionKind,
    ExtensionReference,
    ExtensionStore,
    PoolExhaustedError,
    RoleExtensions,
    constants,
)

PRODUCTION = constants.DEPLOYMENT_SLOT_PRODUCTION
ID_0 = "Default-RDP-Production-Ext-0"
ID_1 = "Default-RDP-Production-Ext-1"


def generate_input(
    kind: ExtensionKind = RDP,
    public_configuration: str = "<User>alice</User>",
    **kwargs: object,
) -> ExtensionInput:
    return ExtensionInput(
        namespace=kind.namespace,
        type=kind.type,
        public_configuration=public_configuration,
        private_configuration="<Password>installer-test</Password>",
        **kwargs,  # type: ignore
    )


def active_ids_of_kind(
    store: ExtensionStore, configuration: ExtensionConfiguration, kind: ExtensionKind
) -> List[str]:
    return [x for x in configuration.default_ids if store.is_kind(x, kind)]


class InstallerTestCase(TestCase):
    def test_enable_then_disable_for_all_roles(self) -> None:
        store = generate_store()
        installer = ExtensionInstaller(store)

        configuration = installer.install(
            ExtensionConfiguration(), generate_input(all_roles=True), PRODUCTION
        )
        assert_that(configuration.default_ids).is_equal_to([ID_0])
        assert_that(configuration.named_roles).is_empty()
        record = store.get(ID_0)
        assert_that(record).is_not_none()
        assert_that(record.public_configuration).is_equal_to(  # type: ignore
            "<User>alice</User>"
        )

        configuration = installer.uninstall(configuration, RDP, all_roles=True)
        assert_that(configuration.default_ids).is_empty()
        assert_that(store.get(ID_0)).is_none()

    def test_default_slot_from_settings(self) -> None:
        store = generate_store()
        configuration = ExtensionInstaller(store).install(None, generate_input())
        assert_that(configuration.default_ids).is_equal_to([ID_0])

    def test_one_active_after_installing_twice(self) -> None:
        store = generate_store()
        installer = ExtensionInstaller(store)

        configuration = installer.install(None, generate_input(), PRODUCTION)
        configuration = installer.install(
            configuration, generate_input(public_configuration="<User>bob</User>")
        )
        assert_that(configuration.default_ids).is_equal_to([ID_1])
        active = active_ids_of_kind(store, configuration, RDP)
        assert_that(active).is_length(1)
        assert_that(store.get(ID_1).public_configuration).is_equal_to(  # type: ignore
            "<User>bob</User>"
        )
        # the released record stays until it's reused or purged.
        assert_that(store.get(ID_0)).is_not_none()

    def test_third_install_reuses_first_id(self) -> None:
        store = generate_store()
        installer = ExtensionInstaller(store)

        configuration = installer.install(None, generate_input())
        configuration = installer.install(configuration, generate_input())
        configuration = installer.install(
            configuration, generate_input(public_configuration="<User>carol</User>")
        )
        assert_that(configuration.default_ids).is_equal_to([ID_0])
        assert_that(store.get(ID_0).public_configuration).is_equal_to(  # type: ignore
            "<User>carol</User>"
        )
        assert_that([x.id for x in store.list()]).contains_only(ID_0, ID_1)

    def test_rotation_keeps_thumbprint(self) -> None:
        store = generate_store(
            [generate_record(ID_0, RDP, thumbprint="ABC", thumbprint_algorithm="sha1")]
        )
        configuration = ExtensionConfiguration(all_roles=[ExtensionReference(id=ID_0)])
        configuration = ExtensionInstaller(store).install(
            configuration, generate_input()
        )
        assert_that(configuration.default_ids).is_equal_to([ID_1])
        record = store.get(ID_1)
        assert_that(record.thumbprint).is_equal_to("ABC")  # type: ignore
        assert_that(record.thumbprint_algorithm).is_equal_to("sha1")  # type: ignore

    def test_diagnostics_on_one_role(self) -> None:
        store = generate_store()
        installer = ExtensionInstaller(store)

        configuration = installer.install(
            None, generate_input(DIAGNOSTICS, named_roles=["WebRole1"])
        )
        assert_that(configuration.default_ids).is_empty()
        assert_that([x.role_name for x in configuration.named_roles]).is_equal_to(
            ["WebRole1"]
        )
        role = configuration.get_role("WebRole1")
        assert_that(role.ids).is_equal_to(  # type: ignore
            ["WebRole1-PaaSDiagnostics-Production-Ext-0"]
        )

        builder = installer.create_builder(configuration)
        assert_that(builder.exist_any_kind(DIAGNOSTICS)).is_true()
        assert_that(builder.exist_kind(["WebRole2"], DIAGNOSTICS)).is_false()

    def test_all_roles_and_named_roles(self) -> None:
        store = generate_store()
        configuration = ExtensionInstaller(store).install(
            None, generate_input(all_roles=True, named_roles=["WebRole1", "WebRole1"])
        )
        assert_that(configuration.default_ids).is_equal_to([ID_0])
        assert_that(configuration.get_role("WebRole1").ids).is_equal_to(  # type: ignore
            ["WebRole1-RDP-Production-Ext-0"]
        )

    def test_other_kinds_are_kept(self) -> None:
        store = generate_store([generate_record("diag", DIAGNOSTICS)])
        configuration = ExtensionConfiguration(
            all_roles=[ExtensionReference(id="diag")]
        )
        installer = ExtensionInstaller(store)

        configuration = installer.install(configuration, generate_input())
        assert_that(configuration.default_ids).is_equal_to(["diag", ID_0])
        configuration = installer.uninstall(configuration, RDP)
        assert_that(configuration.default_ids).is_equal_to(["diag"])

    def test_failed_add_keeps_configuration(self) -> None:
        store = generate_store()
        installer = ExtensionInstaller(store)
        original = ExtensionConfiguration()
        with mock.patch.object(
            store, "add", side_effect=DuplicateIdError(ID_0, store.service_name)
        ):
            with self.assertRaises(DuplicateIdError):
                installer.install(original, generate_input())
        assert_that(original.default_ids).is_empty()
        assert_that(store.list()).is_empty()

    def test_uninstall_named_role(self) -> None:
        store = generate_store(
            [
                generate_record(ID_0, RDP),
                generate_record("WebRole1-RDP-Production-Ext-0", RDP),
            ]
        )
        configuration = ExtensionConfiguration(
            all_roles=[ExtensionReference(id=ID_0)],
            named_roles=[
                RoleExtensions(
                    role_name="WebRole1",
                    extensions=[
                        ExtensionReference(id="WebRole1-RDP-Production-Ext-0")
                    ],
                )
            ],
        )
        configuration = ExtensionInstaller(store).uninstall(
            configuration, RDP, role_names=["WebRole1"]
        )
        assert_that(configuration.default_ids).is_equal_to([ID_0])
        assert_that(configuration.named_roles).is_empty()
        assert_that(store.get("WebRole1-RDP-Production-Ext-0")).is_none()
        assert_that(store.get(ID_0)).is_not_none()

    def test_uninstall_shared_id(self) -> None:
        store = generate_store([generate_record("shared", RDP)])
        configuration = ExtensionConfiguration(
            all_roles=[ExtensionReference(id="shared")],
            named_roles=[
                RoleExtensions(
                    role_name="WebRole1", extensions=[ExtensionReference(id="shared")]
                )
            ],
        )
        configuration = ExtensionInstaller(store).uninstall(
            configuration, RDP, role_names=["WebRole1"], all_roles=True
        )
        assert_that(configuration.all_ids()).is_empty()
        assert_that(store.list()).is_empty()

    def test_uninstall_keeps_id_used_by_default(self) -> None:
        store = generate_store([generate_record("shared", RDP)])
        configuration = ExtensionConfiguration(
            all_roles=[ExtensionReference(id="shared")],
            named_roles=[
                RoleExtensions(
                    role_name="WebRole1", extensions=[ExtensionReference(id="shared")]
                )
            ],
        )
        configuration = ExtensionInstaller(store).uninstall(
            configuration, RDP, role_names=["WebRole1"]
        )
        assert_that(configuration.default_ids).is_equal_to(["shared"])
        assert_that(configuration.named_roles).is_empty()
        assert_that(store.get("shared")).is_not_none()

    def test_install_on_exhausted_pool(self) -> None:
        store = generate_store([generate_record(ID_0, RDP), generate_record(ID_1, RDP)])
        configuration = ExtensionConfiguration(
            all_roles=[ExtensionReference(id=ID_0)],
            named_roles=[
                RoleExtensions(
                    role_name="WebRole1", extensions=[ExtensionReference(id=ID_1)]
                )
            ],
        )
        installer = ExtensionInstaller(store)
        with mock.patch.object(store, "add") as add, mock.patch.object(
            store, "delete"
        ) as delete:
            with self.assertRaises(PoolExhaustedError):
                installer.install(configuration, generate_input())
        add.assert_not_called()
        delete.assert_not_called()
        assert_that(configuration.default_ids).is_equal_to([ID_0])

    def test_uninstall_nothing(self) -> None:
        store = generate_store([generate_record("diag", DIAGNOSTICS)])
        configuration = ExtensionConfiguration(
            all_roles=[ExtensionReference(id="diag")]
        )
        installer = ExtensionInstaller(store)
        with self.assertLogs("svcext", level="WARNING") as cm:
            result = installer.uninstall(configuration, RDP)
        assert_that(result.is_equivalent(configuration)).is_true()
        assert_that(cm.output[0]).contains("nothing to remove")
        assert_that(store.list()).is_length(1)
