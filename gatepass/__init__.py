"""gatepass: time-limited, one-time-use guest passes behind a project/unit policy hierarchy."""
