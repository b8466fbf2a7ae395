"""Friendly labels for Android package identifiers.

The one table every part of the app uses to turn a foreground package id
into the text shown to friends.
"""
from typing import Optional

IDLE_LABEL = "Idle 😴"
OFFLINE_LABEL = "Offline 💤"

APP_NAME_MAP = {
    'com.android.chrome': 'Browsing Chrome 🌐',
    'com.google.android.youtube': 'Watching YouTube 📺',
    'com.spotify.music': 'Listening to Spotify 🎵',
    'com.instagram.android': 'Scrolling Instagram 📸',
    'com.whatsapp': 'Chatting on WhatsApp 💬',
    'com.netflix.mediaclient': 'Watching Netflix 🎬',
    'com.anonymous.peep': 'Using Peep 👁️',
    'com.twitter.android': 'Scrolling X 𝕏',
    'com.google.android.apps.maps': 'Navigating Maps 🗺️',
    'com.google.android.gm': 'Checking Gmail 📧',
    'com.facebook.katana': 'On Facebook 👥',
    # TikTok ships under its legacy musical.ly package id
    'com.zhiliaoapp.musically': 'Watching TikTok 🎵',
    'com.snapchat.android': 'Using Snapchat 👻',
    'com.discord': 'Chatting on Discord 💬',
    'com.linkedin.android': 'Networking on LinkedIn 💼',
    'com.reddit.frontpage': 'Browsing Reddit 🔥',
    'com.amazon.mShop.android.shopping': 'Shopping on Amazon 🛒',
    'com.google.android.dialer': 'On a Call 📞',
    'com.android.contacts': 'Looking at Contacts 📇',
}


def get_friendly_app_name(package_name: Optional[str]) -> str:
    """
    Map a package id to its label.

    Unknown ids become ``"Using <last segment> 📱"``; an empty id is idle.
    """
    if not package_name:
        return IDLE_LABEL
    label = APP_NAME_MAP.get(package_name)
    if label:
        return label
    return f"Using {package_name.split('.')[-1]} 📱"
