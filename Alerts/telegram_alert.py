import requests
import constants


def alerts_enabled():
    return bool(constants.TELEGRAM_BOT_TOKEN and constants.TELEGRAM_CHAT_ID)


def send_alert(message="Ambulance detected! Clearing route."):
    """
    Sends a message to the configured Telegram chat via the bot.
    Returns True if Telegram accepted it. Never raises.
    """
    if not alerts_enabled():
        return False

    url = f"https://api.telegram.org/bot{constants.TELEGRAM_BOT_TOKEN}/sendMessage"
    payload = {
        "chat_id": constants.TELEGRAM_CHAT_ID,
        "text": message
    }

    try:
        response = requests.post(url, json=payload, timeout=constants.TELEGRAM_TIMEOUT)
    except requests.RequestException as e:
        print(f"❌ Alert could not be sent: {e}")
        return False

    if response.status_code == 200:
        print("Alert sent successfully!")
        return True
    print(f"Failed to send alert. Status code: {response.status_code}")
    print(f"Response: {response.text}")
    return False


if __name__ == "__main__":
    send_alert("This is a test alert from the intersection controller! 🚨")
