"""Workaholic task backend with due-task push notifications."""
