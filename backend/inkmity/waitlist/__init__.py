"""Landing-page waitlist, deployed as its own small app (see ``waitlist_main.py``)."""
