# strategy_hub/tests/unit/test_strategy_service.py
"""Unit tests for StrategyService."""
import csv
import io
import json

import pytest

from strategy_hub.db.models import RiskLevel, as_utc
from strategy_hub.strategy_engine.strategy_models import StrategyCreateRequest, StrategyUpdateRequest
from strategy_hub.strategy_engine.strategy_service import StrategyService
from strategy_hub.utils.error_handler import BusinessRuleError, NotFoundError, PermissionDeniedError


@pytest.fixture
def service(db_session):
    return StrategyService(db_session)


class TestStrategyLifecycle:
    """Create, update and delete with ownership checks."""

    def test_create_sets_owner_and_defaults(self, service, make_user):
        owner = make_user()
        data = StrategyCreateRequest(
            name="  Golden Cross  ",
            description="Buy when the 50 SMA crosses above the 200 SMA.",
            parameters={"entry": "SMA50 > SMA200"},
            riskLevel="Low",
        )
        strategy = service.create(owner.id, data)

        assert strategy.user_id == owner.id
        assert strategy.name == "Golden Cross"
        assert strategy.is_public is False
        assert strategy.is_template is False
        assert strategy.copy_count == 0
        assert strategy.average_rating == 0.0

    def test_update_merges_fields(self, service, make_user, make_strategy):
        owner = make_user()
        strategy = make_strategy(owner)

        updated = service.update(owner.id, StrategyUpdateRequest(_id=strategy.id, riskLevel="High"))
        assert updated.risk_level == RiskLevel.HIGH
        assert updated.name == "Mean Reversion"

    def test_update_by_non_owner_is_forbidden(self, service, make_user, make_strategy):
        strategy = make_strategy(make_user())
        with pytest.raises(PermissionDeniedError):
            service.update(make_user().id, StrategyUpdateRequest(id=strategy.id, name="Hijacked"))

    def test_missing_strategy_is_not_found_before_forbidden(self, service, make_user):
        with pytest.raises(NotFoundError):
            service.delete(make_user().id, "does-not-exist")

    def test_delete(self, service, make_user, make_strategy):
        owner = make_user()
        strategy = make_strategy(owner)
        service.delete(owner.id, strategy.id)
        with pytest.raises(NotFoundError):
            service.get(strategy.id)


class TestListing:

    def test_visibility_rules(self, service, make_user, make_strategy):
        alice, bob = make_user(), make_user()
        mine_private = make_strategy(alice, name="Alice Private", is_public=False)
        theirs_public = make_strategy(bob, name="Bob Public")
        make_strategy(bob, name="Bob Private", is_public=False)

        visible = {s.id for s in service.list_strategies(alice.id)}
        assert visible == {mine_private.id, theirs_public.id}

        public = {s.id for s in service.list_strategies(alice.id, public_only=True)}
        assert public == {theirs_public.id}

        anonymous = {s.id for s in service.list_strategies(None)}
        assert anonymous == {theirs_public.id}

    def test_newest_first(self, service, make_user, make_strategy):
        owner = make_user()
        first = make_strategy(owner, name="First")
        second = make_strategy(owner, name="Second")
        assert [s.id for s in service.list_strategies(owner.id)] == [second.id, first.id]


class TestExport:

    def test_private_strategy_of_another_user(self, service, make_user, make_strategy):
        strategy = make_strategy(make_user(), is_public=False)
        with pytest.raises(PermissionDeniedError):
            service.export(make_user().id, strategy.id, "json")

    def test_invalid_format(self, service, make_user, make_strategy):
        owner = make_user()
        strategy = make_strategy(owner)
        with pytest.raises(BusinessRuleError):
            service.export(owner.id, strategy.id, "xml")

    def test_json_export_carries_every_field(self, service, make_user, make_strategy):
        owner = make_user()
        strategy = make_strategy(owner, backtest_performance="Win Rate: 61%, Sharpe: 1.4")
        body, media_type, filename = service.export(owner.id, strategy.id, "json")

        assert media_type == "application/json"
        assert filename.startswith("strategy-Mean Reversion-") and filename.endswith(".json")
        assert json.loads(body) == {
            "name": "Mean Reversion",
            "description": "Buy oversold dips and sell into strength",
            "parameters": {"entry": "RSI<30", "exit": "RSI>70", "timeframe": "1h"},
            "riskLevel": "Medium",
            "assetClass": "Stocks",
            "backtestPerformance": "Win Rate: 61%, Sharpe: 1.4",
            "tags": ["rsi", "swing"],
            "createdAt": as_utc(strategy.created_at).isoformat(),
        }

    def test_csv_export_doubles_quotes(self, service, make_user, make_strategy):
        owner = make_user()
        strategy = make_strategy(owner, name='The "Classic" Setup')
        body, media_type, _ = service.export(owner.id, strategy.id, "csv")

        assert media_type == "text/csv"
        assert body.splitlines()[0] == '"Field","Value"'
        assert '"Name","The ""Classic"" Setup"' in body
        assert not body.endswith("\n")
        rows = dict(csv.reader(io.StringIO(body)))
        assert rows["Tags"] == "rsi, swing"
        assert json.loads(rows["Parameters"])["entry"] == "RSI<30"


class TestParameterValidation:

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), {"nested": [1.0, float("-inf")]}])
    def test_non_finite_numbers_rejected(self, bad):
        with pytest.raises(ValueError, match="NaN or Infinity"):
            StrategyCreateRequest(
                name="Broken Params",
                description="Parameters that cannot be exported as JSON.",
                parameters={"threshold": bad},
                riskLevel="Low",
            )
