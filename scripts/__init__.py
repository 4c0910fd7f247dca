"""
Scripts Package for connector_sdk

Contains runnable scripts for:
- plan_work_items.py: Print (and export) the work item plan of a run
"""
