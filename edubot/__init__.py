"""EduBot gamification core: scoring, insights and leaderboard for the student chatbot"""

__version__ = "1.0.0"
