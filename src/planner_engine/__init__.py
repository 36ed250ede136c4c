"""
Timezone-correct scheduling engine for an interactive week planner.
"""

__version__ = "0.1.0"
