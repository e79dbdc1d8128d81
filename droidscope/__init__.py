"""Android device monitoring, performance sampling and APK manifest inspection over adb."""

__version__ = "0.1.0"