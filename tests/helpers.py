from datetime import date, timedelta
from pathlib import Path


def years_ago(years: int) -> date:
    # 윤년 보정 없이 365일 단위: 경계값 테스트에는 쓰지 말 것
    return date.today() - timedelta(days=365 * years)


def age_at_least_18(dob: date) -> bool:
    today = date.today()
    age = today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))
    return age >= 18


def write_rules(base_dir: Path, name: str = "rules.yaml") -> Path:
    content = """\
cascade: continue

fields:
  Title:
    - rule: not_empty
    - rule: length_between
      min: 3
      max: 100
  Description:
    - rule: max_length
      max: 20
      severity: WARN
  Nickname:
    - rule: min_length
      min: 2
      guard: has_value
"""
    p = base_dir / name
    p.write_text(content, encoding="utf-8")
    return p


def write_record(base_dir: Path, body: str, name: str = "record.yaml") -> Path:
    p = base_dir / name
    p.write_text(body, encoding="utf-8")
    return p
