LANGUAGE_NAMES = {
    'en': 'English',
    'hi': 'Hindi',
    'mr': 'Marathi',
    'ta': 'Tamil',
    'te': 'Telugu',
}


def language_name(code) -> str:
    return LANGUAGE_NAMES.get(str(code or '').lower(), 'English')


def _sensor_lines(sensors) -> str:
    def v(value):
        return 'N/A' if value is None else f"{value:g}"
    return (
        f"- Temperature: {v(sensors.temperature)}°C\n"
        f"- Humidity: {v(sensors.humidity)}%\n"
        f"- Soil Moisture: {v(sensors.soil_moisture)}%\n"
        f"- pH Level: {v(sensors.ph)}\n"
        f"- Light Intensity: {v(sensors.light_intensity)} lux"
    )


def crop_prediction_prompt(sensors, language='en') -> str:
    return (
        "Based on these sensor readings from a smart farm:\n"
        f"{_sensor_lines(sensors)}\n\n"
        "Which crop is most suitable to grow right now in this farm? Please provide:\n"
        "1. The name of the recommended crop\n"
        "2. A brief explanation (2-3 sentences) of why this crop is suitable\n"
        "3. Any specific care recommendations\n\n"
        f"IMPORTANT: Provide your entire response in {language_name(language)} language.\n"
        "Format your response as JSON with keys: cropName, reason, recommendations"
    )


def chat_system_prompt(sensors=None, predicted_crop=None, language='en') -> str:
    context = ''
    if sensors is not None:
        context = f"\n\nCurrent Farm Sensor Data:\n{_sensor_lines(sensors)}"
    if predicted_crop:
        context += f"\n\nAI Predicted Crop: {predicted_crop}"
    return (
        "You are a helpful smart farming assistant. You can answer questions about farming, "
        "analyze sensor data, and provide agricultural advice. "
        f"IMPORTANT: Always respond in {language_name(language)} language.{context}"
    )


def insurance_advice_prompt(crop_type, location, season, language='en') -> str:
    return (
        "You are an agricultural insurance advisor for Indian farmers. "
        "Analyze the following data and provide detailed insurance recommendations:\n\n"
        f"Crop Type: {crop_type}\n"
        f"Location: {location}\n"
        f"Season: {season}\n\n"
        "Please provide:\n"
        "1. Best suitable insurance schemes (prioritize PMFBY and other government schemes)\n"
        "2. Coverage amount and premium rates\n"
        "3. Eligibility criteria\n"
        "4. Official website links\n"
        "5. A daily tip or advisory specific to this crop and season\n"
        "6. Any deadlines or important dates\n\n"
        f"IMPORTANT: Provide your entire response in {language_name(language)} language.\n"
        "Format the response in a structured way with clear sections. "
        "Be specific to Indian agricultural insurance schemes."
    )


def crop_prices_prompt(crop_name, location, language='en') -> str:
    return (
        "You are an agricultural market analyst for Indian farmers. "
        "Provide current market information for the following:\n\n"
        f"Crop: {crop_name}\n"
        f"Location: {location}\n\n"
        "Please provide:\n"
        "1. Current wholesale price (per quintal in INR)\n"
        "2. Current retail price (per quintal in INR)\n"
        "3. Price trend analysis (last 7-30 days) - mention if prices are rising, falling, or stable\n"
        "4. Market insights and predictions (factors affecting prices like weather, demand, season)\n"
        "5. Best time to sell recommendations\n"
        "6. Nearby mandis/markets with better rates\n\n"
        "Reference sources like Agmarknet, government market data, and current agricultural trends in India. "
        "Be specific and practical.\n\n"
        f"IMPORTANT: Provide your entire response in {language_name(language)} language.\n"
        "Format the response in a clear, structured way that farmers can easily understand."
    )
