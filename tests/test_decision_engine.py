"""
Tests for option scoring, decision impact analysis, recommendations and comparison.
"""
import unittest
from datetime import datetime, timedelta

from decision_engine.comparison import compare_decisions
from decision_engine.impact_analyzer import DecisionImpactAnalyzer, create_impact
from decision_engine.option_scorer import OptionScorer
from decision_engine.recommendations import RecommendationBuilder
from scenario_engine.exceptions import DecisionValidationError, SnapshotNotFoundError
from scenario_engine.models import parse_decision, parse_snapshot
from scenario_engine.repository import InMemoryScenarioStore, ScenarioRepository
from tests.fixtures import make_decision, make_heuristics, make_snapshot


def risky_decision():
    return make_decision(
        dependencies=['CRM migration'],
        resources={'budget': 600000, 'headcount': 5, 'time': 120},
        options=[
            {
                'id': 'build',
                'name': 'Build in-house',
                'costs': {'upfront': 200000, 'ongoing': 20000},
                'benefits': {'revenue': 90000, 'efficiency': 10},
                'risks': [
                    {'probability': 0.6, 'impact': 0.5, 'description': 'Delivery slips'},
                    {'probability': 0.2, 'impact': 0.3, 'description': 'Key staff leave'}
                ],
                'timeToImplement': 180
            },
            {
                'id': 'buy',
                'name': 'Buy SaaS',
                'costs': {'upfront': 20000, 'ongoing': 30000},
                'benefits': {'revenue': 60000, 'satisfaction': 85},
                'timeToImplement': 30
            },
            {
                'id': 'wait',
                'name': 'Do nothing',
                'timeToImplement': 0
            }
        ]
    )


class TestOptionScorer(unittest.TestCase):

    def setUp(self):
        self.scorer = OptionScorer(make_heuristics())
        self.snapshot = parse_snapshot(make_snapshot())

    def test_operational_and_strategic_impacts(self):
        option = parse_decision(risky_decision()).options[0]
        operational = self.scorer.score_operational(option, self.snapshot)
        self.assertEqual(operational.efficiency, 85)
        self.assertEqual(operational.capacity, 105)
        self.assertEqual(operational.quality, 80)
        self.assertEqual(operational.time_to_market, 180)

        strategic = self.scorer.score_strategic(option)
        self.assertEqual(strategic.market_position, 60)
        self.assertEqual(strategic.competitive_advantage, 65)
        self.assertEqual(strategic.customer_satisfaction, 70)
        self.assertAlmostEqual(strategic.brand_value, 56)

    def test_risk_profile(self):
        option = parse_decision(risky_decision()).options[0]
        risk = self.scorer.score_risk(option)
        self.assertAlmostEqual(risk.execution, 0.4)
        self.assertAlmostEqual(risk.financial, 0.4)
        self.assertAlmostEqual(risk.overall, 0.16)
        self.assertEqual((risk.technical, risk.market), (0.3, 0.25))

    def test_default_risk_without_declared_risks(self):
        option = parse_decision(risky_decision()).options[2]
        self.assertAlmostEqual(self.scorer.score_risk(option).overall, 0.09)

    def test_composite_score(self):
        option = parse_decision(make_decision()).options[0]
        analysis = self.scorer.analyze_option(option, self.snapshot)
        financial = analysis.financial_impact
        self.assertAlmostEqual(financial.roi, (2000 * 5 - 1000) / 1000)
        expected = (
            (financial.roi * 0.3 + 0.3) * 100 * 0.35
            + 75 * 0.25
            + (60 + 70) / 2 * 0.25
            + (1 - 0.09) * 100 * 0.15
        )
        self.assertAlmostEqual(analysis.score, expected)

    def test_composite_uses_only_score_categories(self):
        weights = {'financial': 0.0, 'operational': 1.0, 'strategic': 0.0, 'risk': 0.0, 'brand': 5.0}
        with self.assertLogs('decision_engine.option_scorer', level='WARNING'):
            scorer = OptionScorer(make_heuristics(score_weights=weights))
        option = parse_decision(make_decision()).options[0]
        self.assertAlmostEqual(scorer.analyze_option(option, self.snapshot).score, 75)

    def test_ranking_is_a_stable_permutation(self):
        decision = parse_decision(make_decision(options=[
            {'id': 'x', 'name': 'x'},
            {'id': 'y', 'name': 'y', 'costs': {'upfront': 100}, 'benefits': {'revenue': 500}},
            {'id': 'z', 'name': 'z'}
        ]))
        ranked = self.scorer.analyze_options(decision, self.snapshot)
        self.assertEqual([a.id for a in ranked], ['y', 'x', 'z'])
        self.assertEqual([a.ranking for a in ranked], [1, 2, 3])
        for better, worse in zip(ranked, ranked[1:]):
            self.assertGreaterEqual(better.score, worse.score)


class TestDecisionImpactAnalyzer(unittest.TestCase):

    def setUp(self):
        self.now = datetime(2025, 6, 1, 12, 0)
        self.analyzer = DecisionImpactAnalyzer(make_heuristics(), clock=lambda: self.now)
        self.snapshot = make_snapshot(updatedAt=(self.now - timedelta(days=1)).isoformat())

    def test_full_analysis(self):
        analysis = self.analyzer.analyze_decision_impact(self.snapshot, risky_decision(), {'timeHorizon': 90})

        rankings = sorted(o.ranking for o in analysis.decision.options)
        self.assertEqual(rankings, [1, 2, 3])
        self.assertEqual(analysis.analyzed_at, self.now)
        self.assertEqual(analysis.tenant_id, 'tenant-1')

        immediate = analysis.impacts.immediate
        self.assertEqual(immediate[0].metric, 'Investment Required')
        self.assertEqual(immediate[0].projected, 600000)
        self.assertEqual(immediate[1].metric, 'Headcount')
        self.assertEqual(immediate[1].baseline, 20)
        self.assertEqual(immediate[1].projected, 25)
        self.assertAlmostEqual(analysis.impacts.short_term[0].projected, 1100.0)
        self.assertEqual(analysis.impacts.long_term[0].projected, 12)

        targets = [(d.type, d.target) for d in analysis.dependencies]
        self.assertEqual(targets, [('prerequisite', 'CRM migration'), ('enabler', 'Budget Approval')])

        budget, time = analysis.constraints
        self.assertEqual(budget.current, 500000)
        self.assertFalse(budget.feasible)
        self.assertEqual(budget.gap, 100000)
        self.assertIsNotNone(budget.mitigation)
        self.assertFalse(time.feasible)
        self.assertEqual(time.gap, 30)
        self.assertIsNotNone(time.mitigation)

    def test_recommendations(self):
        analysis = self.analyzer.analyze_decision_impact(self.snapshot, risky_decision())
        recommendations = analysis.recommendations
        top = analysis.decision.options[0]

        self.assertFalse(recommendations.fallback)
        self.assertEqual(recommendations.primary.option, top.id)
        self.assertEqual(recommendations.primary.timeline.implementation, 120)
        self.assertIn('Decision requires CRM migration to be completed first', recommendations.primary.conditions)
        self.assertEqual(len(recommendations.alternatives), 2)
        self.assertEqual(recommendations.alternatives[0].priority, 'low')

    def test_risk_mitigation_follows_top_option(self):
        decision = make_decision(options=[{
            'id': 'only',
            'name': 'Only option',
            'costs': {'upfront': 1000},
            'benefits': {'revenue': 5000},
            'risks': [
                {'probability': 0.7, 'impact': 0.5, 'description': 'Vendor lock-in'},
                {'probability': 0.3, 'impact': 0.2, 'description': 'Price rise'}
            ]
        }])
        mitigations = self.analyzer.analyze_decision_impact(self.snapshot, decision).recommendations.risk_mitigation
        self.assertEqual([m.strategy for m in mitigations], ['reduce', 'accept'])
        self.assertEqual(mitigations[0].cost, 10000)
        self.assertEqual(mitigations[0].effectiveness, 0.7)

    def test_zero_upfront_gives_zero_payback(self):
        decision = make_decision(options=[{
            'id': 'free',
            'name': 'Free pilot',
            'costs': {'upfront': 0, 'ongoing': 100},
            'benefits': {'revenue': 500}
        }])
        analysis = self.analyzer.analyze_decision_impact(self.snapshot, decision)
        self.assertEqual(analysis.decision.options[0].financial_impact.payback_period, 0)
        self.assertEqual(analysis.to_dict()['decision']['options'][0]['financialImpact']['paybackPeriod'], 0)

    def test_loss_making_option_is_still_analysed(self):
        decision = make_decision(options=[{'id': 'drain', 'name': 'Drain', 'costs': {'upfront': 1, 'ongoing': 1e6}}])
        analysis = self.analyzer.analyze_decision_impact(self.snapshot, decision)
        financial = analysis.decision.options[0].financial_impact
        self.assertFalse(financial.irr_converged)
        self.assertIsNone(financial.payback_period)
        self.assertLess(financial.npv, 0)

    def test_confidence(self):
        snapshot = make_snapshot(
            updatedAt=(self.now - timedelta(days=1)).isoformat(),
            historical=[{'revenue': 900.0}],
            metrics={'a': 1, 'b': 2, 'c': 3, 'd': 4, 'e': 5, 'revenue': 6},
            capabilities={'operations': ['billing']}
        )
        confidence = self.analyzer.analyze_decision_impact(snapshot, make_decision()).confidence
        self.assertAlmostEqual(confidence.overall, (0.8 + 0.6) / 2)
        self.assertAlmostEqual(confidence.data_quality, 1.0)
        self.assertAlmostEqual(confidence.model_accuracy, 1.0)

    def test_confidence_for_sparse_snapshot(self):
        snapshot = make_snapshot(
            updatedAt=(self.now - timedelta(days=30)).isoformat(), departments=[], capabilities={}
        )
        confidence = self.analyzer.analyze_decision_impact(snapshot, make_decision()).confidence
        self.assertAlmostEqual(confidence.data_quality, 0.5)
        self.assertAlmostEqual(confidence.model_accuracy, 0.6)

    def test_defaults_without_departments(self):
        snapshot = make_snapshot(departments=[])
        analysis = self.analyzer.analyze_decision_impact(snapshot, make_decision(resources={'budget': 5000}))
        budget, time = analysis.constraints
        self.assertEqual(budget.current, 1000000)
        self.assertTrue(budget.feasible)
        self.assertEqual((time.current, time.required), (365, 90))
        self.assertEqual(analysis.dependencies, [])

    def test_what_if_exemplars(self):
        analysis = self.analyzer.analyze_decision_impact(self.snapshot, make_decision())
        self.assertEqual([w.scenario for w in analysis.what_if], ['Market Expansion', 'Economic Downturn'])
        likely = analysis.what_if[0].impacts.likely[0]
        self.assertEqual(likely.change, 30000)
        self.assertAlmostEqual(likely.change_percent, 30.0)
        self.assertEqual(analysis.what_if[1].probability, {'best': 0.3, 'likely': 0.5, 'worst': 0.2})

    def test_analysis_is_stored(self):
        store = InMemoryScenarioStore()
        analyzer = DecisionImpactAnalyzer(make_heuristics(), repository=ScenarioRepository(store))
        analysis = analyzer.analyze_decision_impact(self.snapshot, make_decision())
        self.assertEqual(store.load('analyses', analysis.id)['decisionId'], 'decision-1')

    def test_missing_snapshot(self):
        with self.assertRaises(SnapshotNotFoundError):
            self.analyzer.analyze_decision_impact(None, make_decision())

    def test_malformed_decision(self):
        decision = make_decision()
        del decision['options']
        with self.assertRaises(DecisionValidationError):
            self.analyzer.analyze_decision_impact(self.snapshot, decision)


class TestCreateImpact(unittest.TestCase):

    def test_change_against_baseline(self):
        impact = create_impact('customer', 'NPS', 40, 50, 0.7)
        self.assertEqual(impact.change, 10)
        self.assertAlmostEqual(impact.change_percent, 25.0)
        self.assertEqual(impact.explanation, 'Projected change in NPS')

    def test_zero_baseline(self):
        self.assertEqual(create_impact('financial', 'Investment', 0, 500, 0.9).change_percent, 0.0)

    def test_unknown_area(self):
        with self.assertRaises(ValueError):
            create_impact('weather', 'Rainfall', 1, 2, 0.5)


class TestRecommendationFallback(unittest.TestCase):

    def setUp(self):
        self.now = datetime(2025, 6, 1)
        self.snapshot = make_snapshot()

    def test_generator_failure_falls_back(self):
        def broken_generator(context):
            raise RuntimeError('model unavailable')

        analyzer = DecisionImpactAnalyzer(make_heuristics(), generator=broken_generator)
        recommendations = analyzer.analyze_decision_impact(self.snapshot, make_decision()).recommendations
        self.assertTrue(recommendations.fallback)
        self.assertEqual(recommendations.primary.priority, 'high')
        self.assertEqual(recommendations.primary.confidence, 0.75)
        self.assertEqual(recommendations.alternatives, [])
        self.assertEqual(recommendations.risk_mitigation, [])

    def test_malformed_draft_falls_back(self):
        analyzer = DecisionImpactAnalyzer(make_heuristics(), generator=lambda context: {'reasoning': 'nope'})
        recommendations = analyzer.analyze_decision_impact(self.snapshot, make_decision()).recommendations
        self.assertTrue(recommendations.fallback)

    def test_generator_draft_is_used(self):
        seen = {}

        def generator(context):
            seen.update(context)
            return {
                'title': 'Go with A',
                'reasoning': ['Best ROI'],
                'risks': [{'risk': 'Adoption', 'probability': 0.9, 'impact': 0.4, 'mitigation': 'Train staff'}]
            }

        analyzer = DecisionImpactAnalyzer(make_heuristics(), generator=generator)
        recommendations = analyzer.analyze_decision_impact(self.snapshot, make_decision()).recommendations
        self.assertFalse(recommendations.fallback)
        self.assertEqual(recommendations.primary.title, 'Go with A')
        self.assertEqual(recommendations.risk_mitigation[0].strategy, 'reduce')
        self.assertEqual(recommendations.risk_mitigation[0].actions, ['Train staff'])
        self.assertEqual(seen['top_option'], 'A')

    def test_no_options_falls_back(self):
        recommendations = RecommendationBuilder().build(parse_decision(make_decision(options=[])), [], [], [])
        self.assertTrue(recommendations.fallback)
        self.assertEqual(recommendations.primary.option, '')


class TestCompareDecisions(unittest.TestCase):

    def test_comparison(self):
        analyzer = DecisionImpactAnalyzer(make_heuristics())
        expand = make_decision(id='expand', name='Expand')
        hold = make_decision(id='hold', name='Hold', options=[])

        comparison = compare_decisions(make_snapshot(), [expand, hold], analyzer)

        self.assertEqual(comparison.winner, 'expand')
        self.assertEqual(comparison.matrix.criteria, ['ROI', 'Risk', 'Timeline', 'Strategic Value', 'Feasibility'])
        self.assertEqual(comparison.matrix.scores['hold'][:4], [0.0, 0.5, 0.0, 0.0])
        self.assertEqual(len(comparison.matrix.scores['expand']), 5)
        self.assertIn('Expand offers the highest ROI at 900%', comparison.insights)
        self.assertIn('Expand has the lowest risk profile', comparison.insights)
        self.assertEqual(len(comparison.decisions), 2)


if __name__ == '__main__':
    unittest.main()
