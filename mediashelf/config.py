"""
Global configuration, loaded lazily from `config_default.yaml` and any
user-level `mediashelf/config.yaml`.
"""


import confuse

config = confuse.LazyConfig("mediashelf", __name__)
