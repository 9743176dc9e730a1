"""Application services: schedule generation, explanations and chart projections."""
