"""Slack Web API client, Block Kit messages and modals."""