"""
scoring/ — BD Scoring Engine

Modules:
    utils.py                  - Clamping, bucket tables, keyword matching, date helpers
    confidence_calculator.py  - Completeness × quality × reliability confidence
    validation_service.py     - Company-level validation and completeness
    pillars/                  - Six pillar scorers sharing one BasePillar contract
    weighting_engine.py       - Weight normalization, validation, profiles, impact
    engine.py                 - ScoringEngine orchestration, batch and statistics
"""
