"""
Edict - Narrative Card Game Engine

A deterministic, synchronous game-state engine for a single-player,
turn-based narrative card game. Players invest owned cards into
time-limited scenes, resolve them through a staged dice check, and
apply the resulting effects before execution day arrives.

The engine provides:
- Card ownership, tagging, locking and equipment
- Scene lifecycle and slot matching
- The staged dice-check protocol (roll, reroll, golden dice, result)
- Effect application and scene settlement
- Day cycle, think charges and save/load/rewind
"""

__version__ = "0.1.0"
