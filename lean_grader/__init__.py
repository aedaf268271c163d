"""
Lean Grader: Automated grading of formally verified proof submissions.

Compiles a student's Lean file, compares every point-annotated declaration
of the instructor's reference sheet against it, and writes a per-exercise
report for the hosting grading platform.
"""

__version__ = "0.1.0"
