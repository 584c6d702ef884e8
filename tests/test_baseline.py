import pytest

from gasbench.baseline import SystemConfigurator
from gasbench.chain import to_bytes32
from gasbench.config import UNBOUNDED_STALE_PERIOD
from gasbench.errors import BaselineSetupError

from tests.conftest import FakeChain


class TestEstablishBaseline:
    def test_steps_in_order(self, contracts, plan):
        chain = FakeChain(currency_keys=["sUSD", "sETH", "sBTC"])
        SystemConfigurator(chain, contracts, plan).establish_baseline()

        assert chain.sent == [
            ("SystemSettings", "setMinimumStakeTime", (0,)),
            ("SystemSettings", "setWaitingPeriodSecs", (0,)),
            ("SystemSettings", "setRateStalePeriod", (UNBOUNDED_STALE_PERIOD,)),
            ("Issuer", "removeSynths", ([to_bytes32("sETH"), to_bytes32("sBTC")],)),
            (
                "ExchangeRates",
                "updateRates",
                ([to_bytes32("SNX"), to_bytes32("ETH")], [10**18, 10**18], chain.timestamp),
            ),
            ("DebtCache", "takeDebtSnapshot", ()),
        ]
        assert chain.synth_count == 1

    def test_no_removal_when_only_base(self, chain, contracts, plan):
        SystemConfigurator(chain, contracts, plan).establish_baseline()
        assert "removeSynths" not in chain.methods_sent()

    def test_failure_is_fatal_and_stops_sequence(self, contracts, plan):
        chain = FakeChain(currency_keys=["sUSD", "sETH"])
        chain.fail_next("removeSynths")
        with pytest.raises(BaselineSetupError, match="remove extra synths"):
            SystemConfigurator(chain, contracts, plan).establish_baseline()
        assert "updateRates" not in chain.methods_sent()
        assert "takeDebtSnapshot" not in chain.methods_sent()

    def test_read_failure_is_fatal(self, chain, contracts, plan):
        chain.fail_next("availableCurrencyKeys")
        with pytest.raises(BaselineSetupError):
            SystemConfigurator(chain, contracts, plan).establish_baseline()
