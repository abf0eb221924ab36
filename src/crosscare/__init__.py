"""
CrossCare - Culturally-Aware Counseling Queue

Backend services for routing student support requests to counselors
and scoring counselor responses for cultural competency.

IMPORTANT: Feedback produced here is training material for counselors.
It never replaces supervision by a licensed professional.
"""

__version__ = "0.1.0"
__author__ = "CrossCare Engineering Team"
