from artha_ai.analysts.models import (
    AnalysisResult, Fundamentals, HistoryEntry, InvestmentAction, LivePrice, RiskLevel, Technicals,
)


class TestAnalysisResult:

    def test_parses_camel_case_payload(self, sample_payload):
        result = AnalysisResult.model_validate(sample_payload)

        assert result.symbol == "RELIANCE.NS"
        assert result.company_name == "Reliance Industries Ltd"
        assert result.current_price == 2950.75
        assert result.action is InvestmentAction.BUY
        assert result.risk_level is RiskLevel.MEDIUM
        assert result.fundamentals.debt_to_equity == 0.41
        assert result.technicals.support_levels == [2880.0, 2810.0]
        assert result.technicals.rsi == 61.0
        assert result.pros == ["Jio tariff hikes", "Retail expansion"]

    def test_missing_fields_get_defaults(self):
        result = AnalysisResult.model_validate({"symbol": "TCS.NS"})

        assert result.current_price == 0.0
        assert result.currency == "INR"
        assert result.action is InvestmentAction.AVOID
        assert result.risk_level is RiskLevel.HIGH
        assert result.confidence_score == 0.0
        assert result.summary == ""
        assert result.fundamentals == Fundamentals()
        assert result.fundamentals.pe_ratio is None
        assert result.technicals == Technicals()
        assert result.technicals.rsi is None
        assert result.pros == [] and result.cons == [] and result.sources == []

    def test_unknown_enum_values_fall_back(self):
        result = AnalysisResult.model_validate({"action": "STRONG BUY", "riskLevel": "extreme"})
        assert result.action is InvestmentAction.AVOID
        assert result.risk_level is RiskLevel.HIGH

    def test_enum_values_are_case_insensitive(self):
        result = AnalysisResult.model_validate({"action": " sell ", "riskLevel": "low"})
        assert result.action is InvestmentAction.SELL
        assert result.risk_level is RiskLevel.LOW

    def test_malformed_fields_are_coerced(self):
        result = AnalysisResult.model_validate({
            "currentPrice": "₹3,412.10",
            "confidenceScore": "140",
            "summary": None,
            "fundamentals": "not available",
            "technicals": {"supportLevels": ["₹2,100", "n/a", 2050], "rsi": "N/A", "trend": None},
            "pros": "single string",
            "cons": ["Valuation stretched", None, "  "],
            "unexpected": {"ignored": True},
        })

        assert result.current_price == 3412.1
        assert result.confidence_score == 100.0
        assert result.summary == ""
        assert result.fundamentals.roe is None
        assert result.technicals.support_levels == [2100.0, 2050.0]
        assert result.technicals.rsi is None
        assert result.technicals.trend == ""
        assert result.pros == []
        assert result.cons == ["Valuation stretched"]

    def test_fundamentals_accept_formatted_strings(self):
        fundamentals = Fundamentals.model_validate({"peRatio": "24.5x", "roe": "18%", "debtToEquity": "-0.2", "pbRatio": "N/A"})
        assert fundamentals.pe_ratio == 24.5
        assert fundamentals.roe == 18.0
        assert fundamentals.debt_to_equity == -0.2
        assert fundamentals.pb_ratio is None

    def test_non_finite_numbers_are_treated_as_missing(self):
        fundamentals = Fundamentals.model_validate({"peRatio": float("nan"), "roe": "inf"})
        technicals = Technicals.model_validate({"rsi": "NaN", "supportLevels": [2800, float("inf")]})
        assert fundamentals.pe_ratio is None
        assert fundamentals.roe is None
        assert technicals.rsi is None
        assert technicals.support_levels == [2800.0]

    def test_snake_case_names_are_accepted(self):
        result = AnalysisResult(symbol="INFY.NS", company_name="Infosys", current_price=1500)
        assert result.company_name == "Infosys"
        assert result.current_price == 1500.0


class TestHistoryEntry:

    def test_from_analysis(self, sample_payload):
        analysis = AnalysisResult.model_validate(sample_payload)
        entry = HistoryEntry.from_analysis(analysis, timestamp=1700000000000)

        assert entry.symbol == "RELIANCE.NS"
        assert entry.company_name == "Reliance Industries Ltd"
        assert entry.action is InvestmentAction.BUY
        assert entry.timestamp == 1700000000000

    def test_timestamp_defaults_to_now_in_ms(self):
        entry = HistoryEntry(symbol="ITC.NS")
        assert entry.timestamp > 1_600_000_000_000

    def test_serializes_with_camel_case_keys(self):
        entry = HistoryEntry(symbol="ITC.NS", company_name="ITC Ltd", timestamp=1, action=InvestmentAction.HOLD)
        assert entry.model_dump(mode="json", by_alias=True) == {
            "symbol": "ITC.NS", "companyName": "ITC Ltd", "timestamp": 1, "action": "HOLD",
        }


def test_zero_live_price():
    assert LivePrice.zero() == LivePrice(price=0, change=0)
