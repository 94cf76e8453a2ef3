"""Build-Out Cost Estimator - Cloud Functions.

This package contains the Python Cloud Functions for the commercial
real-estate build-out cost estimator.

Architecture:
- Cost engine: Unique Project Factor, weighted quality sliders, design fees
- Configuration tables: size ranges, floors, locations, sliders, market tiers
- Persistence: projects and saved estimates in Firestore
- Presentation and comparison of saved estimates
"""

__version__ = "1.0.0"
