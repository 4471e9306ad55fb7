"""Proceso worker: jobs RQ, scheduler cron y entrypoint."""
