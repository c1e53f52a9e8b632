"""
Financial Models Module
Discounted cash flow metrics for decision options
"""
from financial_models.npv_calculator import IRRResult, NPVCalculator, calculate_irr, calculate_npv

__all__ = [
    'IRRResult',
    'NPVCalculator',
    'calculate_npv',
    'calculate_irr'
]
