import json

from spacecommand.balance import BalanceHarness, BalanceSummary, MatchupStats
from spacecommand.reports.balance_report import build_balance_report


def small_summary() -> BalanceSummary:
    harness = BalanceHarness(trials=4, seed=1)
    matrix = harness.ship_matrix(["scout", "fighter"], trials=4)
    stats = MatchupStats(label_a="Left", label_b="Right", attack_type="assault",
                         trials=4, wins_a=3, wins_b=1, total_rounds=10)
    return BalanceSummary(
        trials=4,
        seed=1,
        ship_matrix=matrix,
        matrix_issues=["scout is underpowered (loses 2/2 matchups)"],
        compositions=[stats],
        cost_effectiveness=harness.cost_effectiveness(),
        experience={0: 0.5, 50: 0.75},
    )

def test_report_markdown_sections():
    md = build_balance_report(small_summary()).to_markdown()
    assert md.startswith("# SpaceCommand Combat Balance Report")
    assert "| attacker | scout | fighter |" in md
    assert "- scout is underpowered" in md
    assert "- Left vs Right: 75.0%" in md
    assert "## Cost-Effectiveness" in md
    assert "- experience 50: 75.0% vs rookies" in md

def test_report_json_roundtrips():
    data = json.loads(build_balance_report(small_summary()).to_json())
    assert data["trials"] == 4 and data["seed"] == 1
    assert data["matchups"][0]["win_rate"] == 0.75
    assert data["experience"] == {"0": 0.5, "50": 0.75}

def test_report_without_issues():
    summary = small_summary()
    summary.matrix_issues = []
    assert "- none detected" in build_balance_report(summary).to_markdown()
