"""
Adapters — the reconciliation core's connections to the outside world.

    base.py       — collaborator contracts (ABCs)
    http.py       — HttpClient (urllib, timeouts, one retry)
    forges/       — GitHub / GitLab / Gitea release APIs
    detectors.py  — CheckverDetector, CommandDetector
    notifiers.py  — LogNotifier
    mock.py       — in-memory test doubles
"""
