"""
Core business layer

Everything here touches the database:
- StateMachine: meeting status transitions
- Managers: roster lifecycle, pairing runs, ratings, duos, event clock
- Locks: concurrency helpers
"""
