"""Background polling for answer API jobs."""

from answer_bridge.jobs.poller import JobNotifier, JobPoller, JobRegistry, PollOutcome

__all__ = ["JobNotifier", "JobPoller", "JobRegistry", "PollOutcome"]
