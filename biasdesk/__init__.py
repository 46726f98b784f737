"""
BiasDesk - Personal Trading Journal

A self-hosted Python toolkit for sizing risk per prop-firm account
and keeping a daily record of directional bias per trading pair.

Bias goes stale at midnight. Refresh it or don't trade it.
"""

__version__ = "0.1.0"
