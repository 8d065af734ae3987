"""
Page audit pipeline: runs a battery of audits over artifacts collected from one
page load and produces a scored report.
"""
