# -*- coding: utf-8 -*-
"""pulselog: record and review heart-rate samples through a permission-gated health store."""

__version__ = "0.1.0"
