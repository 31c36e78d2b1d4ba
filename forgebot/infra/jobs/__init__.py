"""
Scheduled jobs.

This package provides a cron-driven job system with:
- Six-field cron schedules evaluated with croniter
- A database-backed queue unique on (job name, scheduled time)
- Claim-by-conditional-update so each due entry runs once across processes
- Registry-based pluggable jobs
"""
