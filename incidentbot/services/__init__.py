"""Incident, timeline, audit and postmortem services."""