"""Tests for the stateless tester: registration, dispatch and verdict folding."""

from __future__ import annotations

import pytest
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.errors import PydanticSchemaGenerationError

from modelator.tester import (
    UNHANDLED,
    Failure,
    Success,
    Tester,
    Unhandled,
    Wrapped,
    failure_hook,
    fold_verdicts,
    get_failure_hook,
)


class MyTest(BaseModel):
    name: str


class MyTest2(BaseModel):
    id: int


class Bag(BaseModel):
    items: list[int]


class Handle:
    def __init__(self, label: str) -> None:
        self.label = label


def fails(_: MyTest2) -> None:
    raise AssertionError("assertion failed: false")


def succeeds_if_my_test(t: MyTest) -> None:
    if t.name != "my_test":
        raise AssertionError(f"got {t.name}")


@pytest.fixture
def tester() -> Tester:
    tester = Tester()
    tester.register(fails)
    tester.register(succeeds_if_my_test)
    return tester


# --- scenarios ---


def test_plain_text_no_schema_matches_is_unhandled(tester):
    assert tester.dispatch("") == UNHANDLED


def test_failing_text_step_reports_message(tester):
    verdict = tester.dispatch('{"name": "test"}')
    assert isinstance(verdict, Failure)
    assert verdict.message == "got test"
    assert "test_tester.py:" in verdict.location


def test_matching_text_step_succeeds(tester):
    assert tester.dispatch('{"name": "my_test"}') == Success("null")


def test_native_value_renders_like_parsed_text(tester):
    native = tester.dispatch(MyTest(name="my_test"))
    parsed = tester.dispatch('{"name": "my_test"}')
    assert isinstance(native, Success)
    assert native == parsed


def test_structured_tree_succeeds(tester):
    assert tester.dispatch({"name": "my_test"}) == Success("null")


def test_other_schema_is_routed_to_its_predicate(tester):
    verdict = tester.dispatch('{"id": 1}')
    assert verdict == Failure(message="assertion failed: false", location=verdict.location)


# --- laws ---


@pytest.mark.parametrize(
    "value",
    [
        MyTest(name="test"),
        '{"name": "test"}',
        {"name": "test"},
        MyTest(name="my_test"),
        '{"name": "my_test"}',
        {"name": "my_test"},
    ],
)
def test_wrappers_are_transparent(tester, value):
    plain = tester.dispatch(value)
    assert tester.dispatch(Wrapped(value)) == plain
    assert tester.dispatch(Wrapped(Wrapped(Wrapped(value)))) == plain


def test_conversion_equivalence():
    tester = Tester()

    @tester.register
    def echo(t: MyTest) -> MyTest:
        return t

    native = tester.dispatch(MyTest(name="x"))
    assert native == tester.dispatch('{"name": "x"}')
    assert native == tester.dispatch({"name": "x"})
    assert native == Success('{\n  "name": "x"\n}')


def test_dispatch_is_idempotent(tester):
    for value in ["", '{"name": "test"}', '{"name": "my_test"}']:
        assert tester.dispatch(value) == tester.dispatch(value)


def test_failure_overrides_earlier_success_and_skips_rest():
    calls: list[str] = []
    tester = Tester()

    @tester.register
    def first(t: MyTest) -> str:
        calls.append("first")
        return "ok"

    @tester.register
    def second(t: MyTest) -> None:
        calls.append("second")
        raise ValueError("second failed")

    @tester.register
    def third(t: MyTest) -> None:
        calls.append("third")
        raise ValueError("third failed")

    verdict = tester.dispatch({"name": "a"})
    assert isinstance(verdict, Failure)
    assert verdict.message == "second failed"
    assert calls == ["first", "second"]


def test_first_success_is_sticky():
    tester = Tester()
    tester.register(lambda t: "a", accepts=MyTest)
    tester.register(lambda t: "b", accepts=MyTest)
    assert tester.dispatch({"name": "x"}) == Success('"a"')


def test_unhandled_predicates_do_not_claim():
    tester = Tester()
    tester.register(lambda t: "id", accepts=MyTest2)
    tester.register(lambda t: "name", accepts=MyTest)
    tester.register(lambda t: "late", accepts=MyTest2)
    assert tester.dispatch({"name": "x"}) == Success('"name"')


def test_empty_tester_is_unhandled():
    assert Tester().dispatch({"name": "x"}) is UNHANDLED


def test_fold_stops_consuming_after_failure():
    def verdicts():
        yield Success("a")
        yield Failure("stop", "here:1")
        raise AssertionError("consumed past the failure")

    assert fold_verdicts(verdicts()) == Failure("stop", "here:1")


def test_fold_keeps_first_handled_verdict():
    assert fold_verdicts([Unhandled(), Success("a"), Success("b")]) == Success("a")
    assert fold_verdicts([Unhandled(), Unhandled()]) == UNHANDLED
    assert fold_verdicts([]) == UNHANDLED


# --- registration ---


def test_register_returns_predicate_for_decorator_use():
    tester = Tester()
    assert tester.register(succeeds_if_my_test) is succeeds_if_my_test
    assert len(tester) == 1


def test_register_without_annotation_needs_accepts():
    tester = Tester()
    with pytest.raises(TypeError, match="accepts="):
        tester.register(lambda t: t)


def test_register_predicate_without_parameters_is_rejected():
    tester = Tester()
    with pytest.raises(TypeError):
        tester.register(lambda: None)


def test_register_bound_method():
    class Checker:
        def check(self, t: MyTest) -> str:
            return t.name

    tester = Tester()
    tester.register(Checker().check)
    assert tester.dispatch('{"name": "bound"}') == Success('"bound"')


def test_schema_registration_rejects_types_without_schema():
    tester = Tester()
    with pytest.raises(PydanticSchemaGenerationError):
        tester.register(lambda h: h.label, accepts=Handle)


def test_direct_registration_matches_live_objects_only():
    tester = Tester()
    tester.register_direct(lambda h: h.label, accepts=Handle)
    assert tester.dispatch(Handle("live")) == Success('"live"')
    assert tester.dispatch(Wrapped(Handle("boxed"))) == Success('"boxed"')
    assert tester.dispatch('{"label": "text"}') == UNHANDLED


def test_direct_registration_does_not_parse_schema_types():
    tester = Tester()
    tester.register_direct(succeeds_if_my_test)
    assert tester.dispatch('{"name": "my_test"}') == UNHANDLED
    assert tester.dispatch(MyTest(name="my_test")) == Success("null")


def test_schema_predicates_get_their_own_copy():
    seen: list[int] = []
    tester = Tester()

    @tester.register
    def grow(b: Bag) -> None:
        b.items.append(1)

    @tester.register
    def measure(b: Bag) -> None:
        seen.append(len(b.items))

    bag = Bag(items=[])
    tester.dispatch(bag)
    assert seen == [0]
    assert bag.items == []


# --- failure hook ---


def test_failure_hook_is_restored_after_dispatch(tester):
    def sentinel(info):
        raise AssertionError("sentinel hook must not be called")

    with failure_hook(sentinel):
        tester.dispatch('{"name": "test"}')
        tester.dispatch('{"name": "my_test"}')
        tester.dispatch("")
        assert get_failure_hook() is sentinel


# --- verdicts ---


def test_verdict_properties():
    assert Success("x").passed and Success("x").handled and not Success("x").failed
    assert Failure("m").failed and Failure("m").handled and not Failure("m").passed
    assert not UNHANDLED.handled and not UNHANDLED.passed and not UNHANDLED.failed


def test_verdicts_are_hashable_values():
    assert {Success("a"), Success("a"), Unhandled()} == {Success("a"), UNHANDLED}
    assert Failure("m", "f:1") != Failure("m", "f:2")


class Coded(BaseModel):
    code: str

    @field_validator("code", mode="before")
    @classmethod
    def lookup(cls, v):
        return {"a": "A"}[v]


class NoCopy:
    def __deepcopy__(self, memo):
        raise TypeError("cannot copy NoCopy")


class Holder(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)
    resource: NoCopy


def test_validator_raising_outside_validation_errors_is_unhandled():
    tester = Tester()
    tester.register(lambda c: c.code, accepts=Coded)

    assert tester.dispatch('{"code": "a"}') == Success('"A"')
    assert tester.dispatch('{"code": "zzz"}') == UNHANDLED
    assert tester.dispatch({"code": "zzz"}) == UNHANDLED


def test_uncopyable_native_input_is_unhandled():
    tester = Tester()
    tester.register(lambda h: "seen", accepts=Holder)
    tester.register_direct(lambda h: "direct", accepts=Holder)

    assert tester.dispatch(Holder(resource=NoCopy())) == Success('"direct"')
