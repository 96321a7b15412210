"""Homework Grader API gateway."""
