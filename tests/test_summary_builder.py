from datetime import date, datetime

from models import db
from models.city import City
from models.city_daily_summary import CityDailySummary
from models.pollution_reading import PollutionReading
from utils.summary_builder import build_daily_summaries, refresh_all_summaries


def make_reading(day, hour, aqi, **pollutants):
    values = {"pm25": 10, "pm10": 20, "co": 1, "no2": 2, "so2": 3, "o3": 4}
    values.update(pollutants)
    return {"recorded_at": datetime(2024, 5, day, hour), "aqi": aqi, **values}


def test_groups_readings_by_date():
    readings = [
        make_reading(1, 1, 100),
        make_reading(1, 13, 50),
        make_reading(2, 6, 90, pm10=200),
    ]
    rows = build_daily_summaries(7, readings)

    assert [row["summary_date"] for row in rows] == [date(2024, 5, 1), date(2024, 5, 2)]
    first = rows[0]
    assert first["city_id"] == 7
    assert first["avg_aqi"] == 75
    assert first["max_aqi"] == 100
    assert first["min_aqi"] == 50
    assert first["trend_score"] == 0
    assert first["dominant_pollutant"] == "pm10"
    assert rows[1]["trend_score"] == 15
    assert rows[1]["avg_pm10"] == 200


def test_days_keeps_most_recent_dates():
    readings = [make_reading(day, 0, 100 + day) for day in range(1, 6)]
    rows = build_daily_summaries(1, readings, days=2)

    assert [row["summary_date"].day for row in rows] == [4, 5]
    assert rows[0]["trend_score"] == 1
    assert rows[1]["trend_score"] == 1


def test_days_trend_uses_day_before_window():
    readings = [make_reading(1, 0, 100), make_reading(2, 0, 160), make_reading(3, 0, 130)]
    rows = build_daily_summaries(1, readings, days=1)

    assert len(rows) == 1
    assert rows[0]["summary_date"].day == 3
    assert rows[0]["trend_score"] == -30


def test_no_readings_no_summaries():
    assert build_daily_summaries(1, []) == []


def test_refresh_upserts_rows(app, create_city):
    city_id = create_city()

    with app.app_context():
        for hour, aqi in ((1, 100), (2, 200)):
            db.session.add(PollutionReading(
                city_id=city_id, recorded_at=datetime(2024, 5, 1, hour), aqi=aqi,
                pm25=10, pm10=20, co=1, no2=2, so2=3, o3=4,
            ))
        db.session.commit()

        assert refresh_all_summaries(City.query.all()) == 1
        row = CityDailySummary.query.filter_by(city_id=city_id).one()
        assert row.avg_aqi == 150

        # Running again updates in place
        assert refresh_all_summaries(City.query.all()) == 1
        assert CityDailySummary.query.filter_by(city_id=city_id).count() == 1
        assert db.session.get(CityDailySummary, row.id).avg_aqi == 150
