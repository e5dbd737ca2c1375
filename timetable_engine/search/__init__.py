# timetable_engine/search/__init__.py

"""
Search module: backtracking enumeration of valid timetables
"""

from .backtracking import TimetableGenerator, generate_timetables

__all__ = ["TimetableGenerator", "generate_timetables"]
