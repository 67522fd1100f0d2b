from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="pokescan", alias="APP_NAME")
    environment: str = Field(default="dev", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    logs_dir: str = Field(default="logs", alias="LOGS_DIR")

    # OCR (appraisal screens are mostly large, high-contrast text)
    ocr_language: str = Field(default="eng", alias="OCR_LANGUAGE")
    tesseract_cmd: str | None = Field(default=None, alias="TESSERACT_CMD")
    ocr_preprocess: str = Field(default="grayscale", alias="OCR_PREPROCESS")  # none|grayscale|binary|auto
    ocr_scale: float = Field(default=1.0, alias="OCR_SCALE")
    ocr_psm: int = Field(default=6, alias="OCR_PSM")
    ocr_oem: int = Field(default=3, alias="OCR_OEM")
    ocr_multi_pass: bool = Field(default=True, alias="OCR_MULTI_PASS")
    ocr_engines: str = Field(default="tesseract,paddle", alias="OCR_ENGINES")
    ocr_timeout_s: float = Field(default=30.0, alias="OCR_TIMEOUT_S")

    # Level meter search band, as fractions of image height
    vision_band_top: float = Field(default=0.10, alias="VISION_BAND_TOP")
    vision_band_bottom: float = Field(default=0.45, alias="VISION_BAND_BOTTOM")
    vision_row_step: int = Field(default=5, gt=0, alias="VISION_ROW_STEP")
    vision_parallel_rows: bool = Field(default=False, alias="VISION_PARALLEL_ROWS")

    # White predicate for the meter dot
    vision_lum_threshold: float = Field(default=210.0, alias="VISION_LUM_THRESHOLD")
    vision_sat_threshold: float = Field(default=25.0, alias="VISION_SAT_THRESHOLD")
    vision_min_run_width: int = Field(default=3, alias="VISION_MIN_RUN_WIDTH")
    vision_gap_factor: float = Field(default=1.5, alias="VISION_GAP_FACTOR")
    vision_overlap_tolerance: int = Field(default=2, alias="VISION_OVERLAP_TOLERANCE")

    # Dot candidate filters
    vision_dot_min_size: int = Field(default=10, alias="VISION_DOT_MIN_SIZE")
    vision_dot_max_size: int = Field(default=45, alias="VISION_DOT_MAX_SIZE")
    vision_dot_min_aspect: float = Field(default=0.6, alias="VISION_DOT_MIN_ASPECT")
    vision_dot_max_aspect: float = Field(default=1.6, alias="VISION_DOT_MAX_ASPECT")
    vision_edge_margin: float = Field(default=0.05, alias="VISION_EDGE_MARGIN")

    # Arc bounds
    arc_row_step: int = Field(default=10, gt=0, alias="ARC_ROW_STEP")
    arc_width_ratio: float = Field(default=0.85, alias="ARC_WIDTH_RATIO")
    arc_min_width_ratio: float = Field(default=0.5, alias="ARC_MIN_WIDTH_RATIO")
    arc_shrink_ratio: float = Field(default=0.9, alias="ARC_SHRINK_RATIO")

    # Appraisal IV bars
    iv_bars_enabled: bool = Field(default=True, alias="IV_BARS_ENABLED")
    iv_sample_count: int = Field(default=400, gt=0, alias="IV_SAMPLE_COUNT")
    iv_edge_threshold: int = Field(default=30, alias="IV_EDGE_THRESHOLD")
    iv_min_bar_width: int = Field(default=80, alias="IV_MIN_BAR_WIDTH")

    # Species names
    pokeapi_base_url: str = Field(default="https://pokeapi.co/api/v2", alias="POKEAPI_BASE_URL")
    pokeapi_timeout_s: float = Field(default=15.0, alias="POKEAPI_TIMEOUT_S")
    species_names_file: str | None = Field(default=None, alias="SPECIES_NAMES_FILE")


settings = Settings()
