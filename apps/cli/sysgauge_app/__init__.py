"""SysGauge command line application."""
