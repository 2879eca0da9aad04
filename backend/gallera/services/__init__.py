"""
Services Layer

Tournament logic that:
- Takes a TournamentState (plus plain inputs) and returns a new one
- Never mutates its input state
- Does NOT depend on HTTP request/response objects
- Leaves persistence to state_store
"""
