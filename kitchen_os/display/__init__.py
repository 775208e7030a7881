"""
Kitchen display terminal core

The engine a kitchen display runs: ticket cache, HTTP client, per-item
mutation queue, real-time subscriber, alert tones and the shift handover
flow. Painting the screen is left to the front end that embeds it.
"""
