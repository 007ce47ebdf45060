"""HTTP surface for the SignalPro core."""
