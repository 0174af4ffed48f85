"""
Service layer

Pure computation, no state transitions:
- pairing_service: candidate pairs from shared categories
- schedule_service: round/table assignment (full and incremental)
- ranking_service: duo ranking and leaderboard
- scoring_service: rating validation and averages
- timeslot_service: slot labels and meeting timer
- naming_service: connection codes and display names
- history_service: per-participant schedule view
"""
