"""Unit tests for parameter collection (create_stripeflare.params).

Tests cover:
- ProjectParameters validation (name, domain, price) and immutability
- parse_price
- collect: supplied values, prompt order, optional/required price, failures
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from create_stripeflare.errors import InvalidParameters
from create_stripeflare.params import (
    PROMPTS,
    ParameterInput,
    ProjectParameters,
    collect,
    parse_price,
)


# ---------------------------------------------------------------------------
# ProjectParameters
# ---------------------------------------------------------------------------


class TestProjectParameters:
    @pytest.mark.unit
    def test_values_are_stripped(self):
        params = ProjectParameters(name=" myapp ", domain=" myapp.dev ", title=" My App ")
        assert params.name == "myapp"
        assert params.domain == "myapp.dev"
        assert params.title == "My App"

    @pytest.mark.unit
    def test_tokens(self, project_params: ProjectParameters):
        assert project_params.tokens() == {
            "name": "myapp",
            "domain": "myapp.example.com",
            "title": "My App",
        }

    @pytest.mark.unit
    def test_fixed_price_flag(self, project_params: ProjectParameters):
        assert project_params.fixed_price is False
        priced = project_params.model_copy(update={"price": Decimal("19.99")})
        assert priced.fixed_price is True

    @pytest.mark.unit
    def test_frozen(self, project_params: ProjectParameters):
        with pytest.raises(ValidationError):
            project_params.name = "other"

    @pytest.mark.unit
    @pytest.mark.parametrize("domain", ["https://x.dev", "x.dev/path", "x .dev"])
    def test_domain_must_be_bare_hostname(self, domain: str):
        with pytest.raises(ValidationError):
            ProjectParameters(name="a", domain=domain, title="t")

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["a/b", "..", ".", "a\\b"])
    def test_name_must_be_plain_directory(self, name: str):
        with pytest.raises(ValidationError):
            ProjectParameters(name=name, domain="x.dev", title="t")

    @pytest.mark.unit
    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            ProjectParameters(name="a", domain="x.dev", title="   ")


# ---------------------------------------------------------------------------
# parse_price
# ---------------------------------------------------------------------------


class TestParsePrice:
    @pytest.mark.unit
    def test_valid(self):
        assert parse_price(" 19.99 ") == Decimal("19.99")

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["abc", "0", "-5", "nan", "inf", ""])
    def test_invalid(self, raw: str):
        with pytest.raises(InvalidParameters):
            parse_price(raw)

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["0.004", "0.001", "0.0049"])
    def test_below_one_cent_rejected(self, raw: str):
        with pytest.raises(InvalidParameters) as exc_info:
            parse_price(raw)
        assert exc_info.value.problems == ["price: must be at least 0.01"]

    @pytest.mark.unit
    @pytest.mark.parametrize("raw,expected", [("0.01", "0.01"), ("0.005", "0.005")])
    def test_one_cent_after_rounding_accepted(self, raw: str, expected: str):
        assert parse_price(raw) == Decimal(expected)

    @pytest.mark.unit
    def test_model_rejects_below_one_cent(self):
        with pytest.raises(ValidationError):
            ProjectParameters(name="a", domain="a.dev", title="A", price=Decimal("0.004"))


# ---------------------------------------------------------------------------
# collect
# ---------------------------------------------------------------------------


class TestCollect:
    @pytest.mark.unit
    def test_all_values_supplied_no_prompt(self, answers):
        ask = answers([])
        params = collect(
            ParameterInput(name="myapp", domain="myapp.example.com", title="My App"),
            ask=ask,
        )
        ask.assert_not_called()
        assert params.name == "myapp"
        assert params.price is None

    @pytest.mark.unit
    def test_prompts_in_order(self, answers):
        ask = answers(["myapp", "myapp.example.com", "My App"])
        params = collect(ParameterInput(), ask=ask)
        prompts = [c.args[0] for c in ask.call_args_list]
        assert prompts == [PROMPTS["name"], PROMPTS["domain"], PROMPTS["title"]]
        assert params.title == "My App"

    @pytest.mark.unit
    def test_prompts_only_for_missing(self, answers):
        ask = answers(["My App"])
        params = collect(ParameterInput(name="myapp", domain="myapp.dev"), ask=ask)
        assert [c.args[0] for c in ask.call_args_list] == [PROMPTS["title"]]
        assert params.domain == "myapp.dev"

    @pytest.mark.unit
    def test_price_not_prompted_by_default(self, answers):
        ask = answers(["myapp", "myapp.dev", "My App"])
        params = collect(None, ask=ask)
        assert ask.call_count == 3
        assert params.fixed_price is False

    @pytest.mark.unit
    def test_price_prompted_when_required(self, answers):
        ask = answers(["myapp", "myapp.dev", "My App", "19.99"])
        params = collect(None, require_price=True, ask=ask)
        assert ask.call_args_list[-1].args[0] == PROMPTS["price"]
        assert params.price == Decimal("19.99")

    @pytest.mark.unit
    def test_supplied_price_used_without_prompt(self, answers):
        ask = answers([])
        params = collect(
            ParameterInput(name="a", domain="a.dev", title="A", price="5"),
            require_price=True,
            ask=ask,
        )
        ask.assert_not_called()
        assert params.price == Decimal("5")

    @pytest.mark.unit
    def test_empty_answer_is_fatal(self, answers):
        ask = answers(["myapp", "", "My App"])
        with pytest.raises(InvalidParameters) as exc_info:
            collect(None, ask=ask)
        assert any("domain" in p for p in exc_info.value.problems)

    @pytest.mark.unit
    def test_empty_required_price_is_fatal(self, answers):
        ask = answers(["   "])
        with pytest.raises(InvalidParameters):
            collect(
                ParameterInput(name="a", domain="a.dev", title="A"),
                require_price=True,
                ask=ask,
            )

    @pytest.mark.unit
    def test_invalid_price_is_fatal(self, answers):
        with pytest.raises(InvalidParameters):
            collect(
                ParameterInput(name="a", domain="a.dev", title="A", price="-1"),
                ask=answers([]),
            )

    @pytest.mark.unit
    def test_sub_cent_price_is_fatal(self, answers):
        with pytest.raises(InvalidParameters) as exc_info:
            collect(
                ParameterInput(name="a", domain="a.dev", title="A", price="0.004"),
                ask=answers([]),
            )
        assert "price: must be at least 0.01" in exc_info.value.problems

    @pytest.mark.unit
    def test_malformed_domain_is_fatal(self, answers):
        with pytest.raises(InvalidParameters) as exc_info:
            collect(
                ParameterInput(name="a", domain="https://a.dev", title="A"),
                ask=answers([]),
            )
        assert any(p.startswith("domain") for p in exc_info.value.problems)
