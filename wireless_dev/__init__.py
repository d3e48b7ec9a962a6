"""Wireless adb helpers for React Native/Expo development."""

__version__ = "1.0.2"
