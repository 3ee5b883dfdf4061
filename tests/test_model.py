import pytest

from busgen.core.model import EventDef, SourceFile, derive_prefix, pascal_case, snake_case


@pytest.mark.parametrize(
    "binding, want",
    [
        ("Events", ""),
        ("OrderEvents", "Order"),
        ("UserEvents", "User"),
        ("Commands", "Commands"),
        ("Notifications", "Notifications"),
        ("MyBus", "MyBus"),
        ("E", "E"),
    ],
)
def test_derive_prefix(binding: str, want: str) -> None:
    assert derive_prefix(binding) == want


@pytest.mark.parametrize(
    "name, want",
    [
        ("recipe.mutation", "RecipeMutation"),
        ("user.registration", "UserRegistration"),
        ("shopping_list.cleanup", "ShoppingListCleanup"),
        ("data-sync.complete", "DataSyncComplete"),
        ("simple", "Simple"),
        ("a.b.c", "ABC"),
    ],
)
def test_pascal_case(name: str, want: str) -> None:
    assert pascal_case(name) == want


def test_snake_case_keeps_distinct_symbols_distinct() -> None:
    assert snake_case("OrderCreated") == "order_created"
    assert snake_case("ABC") == "a_b_c"
    assert snake_case("AB") != snake_case("Ab")


def test_member_names() -> None:
    assert EventDef("order.created", "OrderCreated").member_name == "ORDER_CREATED"
    assert EventDef("shopping_list.cleanup", "X").member_name == "SHOPPING_LIST_CLEANUP"
    assert EventDef("2fa.enabled", "X").member_name == "E_2FA_ENABLED"
    assert EventDef("2fa.enabled", "X").method_suffix == "2fa_enabled"


def test_source_file_module() -> None:
    f = SourceFile(path="pkg/events.py", text="")
    assert f.name == "events.py"
    assert f.module == "events"
