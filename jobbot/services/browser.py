"""
Selenium-based browser automation for filling job application forms
"""

import logging
import os
import time
from typing import Any, Callable, Dict, List, Optional

from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from ..core.config import Settings, settings
from ..core.utils import utcnow
from ..models.application import ApplicationFormData

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

INPUT_SELECTORS = [
    'input[type="text"]', 'input[type="email"]', 'input[type="tel"]',
    'input[name*="name"]', 'input[name*="email"]', 'input[name*="phone"]',
    'input[id*="name"]', 'input[id*="email"]', 'input[id*="phone"]',
]
TEXTAREA_SELECTORS = ['textarea', 'textarea[name*="cover"]', 'textarea[name*="message"]', 'textarea[id*="cover"]']
FILE_SELECTORS = [
    'input[type="file"]', 'input[name*="resume"]', 'input[name*="cv"]',
    'input[id*="resume"]', 'input[id*="cv"]',
]

# Form field -> selectors tried in order, the first match is filled
FIELD_SELECTORS = {
    'first_name': ['input[name*="firstName"]', 'input[id*="firstName"]', 'input[name*="first_name"]'],
    'last_name': ['input[name*="lastName"]', 'input[id*="lastName"]', 'input[name*="last_name"]'],
    'email': ['input[name*="email"]', 'input[id*="email"]', 'input[type="email"]'],
    'phone': ['input[name*="phone"]', 'input[id*="phone"]', 'input[type="tel"]'],
    'linkedin_url': ['input[name*="linkedin"]', 'input[id*="linkedin"]'],
    'portfolio_url': ['input[name*="portfolio"]', 'input[id*="portfolio"]', 'input[name*="website"]'],
    'cover_letter': ['textarea[name*="cover"]', 'textarea[id*="cover"]', 'textarea[name*="message"]'],
}

SUBMIT_SELECTORS = [
    (By.CSS_SELECTOR, 'button[type="submit"]'),
    (By.CSS_SELECTOR, 'input[type="submit"]'),
    (By.CSS_SELECTOR, 'button[name*="submit"]'),
    (By.CSS_SELECTOR, 'button[id*="submit"]'),
    (By.XPATH, '//button[contains(normalize-space(.), "Submit")]'),
    (By.XPATH, '//button[contains(normalize-space(.), "Apply")]'),
    (By.CSS_SELECTOR, 'a[href*="apply"]'),
]

SUCCESS_SELECTORS = ['.success', '.confirmation', '[class*="success"]']
SUCCESS_PHRASES = ['thank you', 'application submitted', 'successfully submitted', 'received your application']


class BrowserAutomationError(Exception):
    """The browser could not be started or driven"""


def create_chrome_driver(config: Settings) -> webdriver.Chrome:
    """Chrome WebDriver with settings suited to unattended form filling"""
    chrome_options = Options()

    if config.browser_headless:
        chrome_options.add_argument("--headless=new")

    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument("--disable-gpu")
    chrome_options.add_argument("--disable-extensions")
    chrome_options.add_argument("--window-size=1366,768")
    chrome_options.add_argument(f"--user-agent={USER_AGENT}")

    driver = webdriver.Chrome(service=Service(), options=chrome_options)
    driver.set_page_load_timeout(config.browser_timeout)
    return driver


class BrowserAutomationService:
    """Drives a browser through a job application form"""

    def __init__(self, config: Settings = settings, driver_factory: Optional[Callable[[Settings], Any]] = None):
        self.config = config
        self.driver_factory = driver_factory or create_chrome_driver
        self.driver = None

    def init_browser(self) -> None:
        try:
            self.driver = self.driver_factory(self.config)
            logger.info("✅ Browser automation initialized")
        except WebDriverException as e:
            logger.error(f"❌ Failed to initialize WebDriver: {e}")
            raise BrowserAutomationError(f"Failed to start browser: {e}") from e

    def close_browser(self) -> None:
        if not self.driver:
            return
        try:
            self.driver.quit()
            logger.info("Browser closed")
        except WebDriverException as e:
            logger.warning(f"Error closing browser: {e}")
        finally:
            self.driver = None

    def _require_driver(self):
        if not self.driver:
            raise BrowserAutomationError("Browser not initialized")
        return self.driver

    def navigate_to_job_application(self, url: str) -> bool:
        """Open an application page, starting the browser if needed"""
        if not self.driver:
            self.init_browser()

        try:
            logger.info(f"🚀 Navigating to: {url}")
            self.driver.get(url)
            WebDriverWait(self.driver, self.config.browser_timeout).until(
                EC.presence_of_element_located((By.TAG_NAME, "body"))
            )
            return True
        except (TimeoutException, WebDriverException) as e:
            logger.error(f"Error navigating to job application: {e}")
            return False

    def _visible(self, selector: str, by: str = By.CSS_SELECTOR) -> List[Any]:
        driver = self._require_driver()
        try:
            return [el for el in driver.find_elements(by, selector) if el.is_displayed()]
        except WebDriverException:
            return []

    def detect_form_fields(self) -> List[Dict[str, str]]:
        """Visible inputs, textareas and file pickers on the current page"""
        self._require_driver()
        fields = []
        for field_type, selectors in (('input', INPUT_SELECTORS), ('textarea', TEXTAREA_SELECTORS), ('file', FILE_SELECTORS)):
            for selector in selectors:
                # File inputs are often hidden behind a styled button
                found = self._visible(selector) if field_type != 'file' else self.driver.find_elements(By.CSS_SELECTOR, selector)
                fields.extend({'selector': selector, 'type': field_type} for _ in found)

        logger.info(f"Detected {len(fields)} form fields")
        return fields

    def fill_application_form(self, form_data: ApplicationFormData) -> bool:
        """
        Type the applicant's details into the current form

        Returns:
            True once every known field has been attempted
        """
        driver = self._require_driver()
        logger.info("📝 Filling application form...")

        values = form_data.model_dump()
        for field, selectors in FIELD_SELECTORS.items():
            value = values.get(field)
            if not value:
                continue

            for selector in selectors:
                elements = self._visible(selector)
                if not elements:
                    continue
                try:
                    element = elements[0]
                    element.click()
                    element.clear()
                    element.send_keys(value)
                    logger.info(f"Filled field: {selector}")
                    break
                except WebDriverException:
                    continue

        if form_data.resume and os.path.exists(form_data.resume):
            try:
                file_inputs = driver.find_elements(By.CSS_SELECTOR, 'input[type="file"]')
                if file_inputs:
                    file_inputs[0].send_keys(os.path.abspath(form_data.resume))
                    logger.info("Resume uploaded")
            except WebDriverException as e:
                logger.error(f"Error uploading resume: {e}")

        logger.info("Form filling completed")
        return True

    def submit_application(self) -> bool:
        """Click the first visible submit control, if submission is enabled"""
        self._require_driver()

        if not self.config.browser_submit_enabled:
            logger.info("Submission disabled - form left filled but unsubmitted")
            return False

        for by, selector in SUBMIT_SELECTORS:
            for element in self._visible(selector, by):
                if not element.is_enabled():
                    continue
                try:
                    element.click()
                    logger.info(f"Clicked submit button: {selector}")
                    return True
                except WebDriverException:
                    continue

        logger.warning("No submit button found or clicked")
        return False

    def check_application_success(self) -> bool:
        if not self.driver:
            return False

        for selector in SUCCESS_SELECTORS:
            if self._visible(selector):
                logger.info(f"Success indicator found: {selector}")
                return True

        page_text = (self.get_page_content() or "").lower()
        return any(phrase in page_text for phrase in SUCCESS_PHRASES)

    def take_screenshot(self, filename: Optional[str] = None) -> Optional[str]:
        if not self.driver:
            return None

        path = filename or f"screenshot-{int(time.time() * 1000)}.png"
        try:
            self.driver.save_screenshot(path)
            logger.info(f"Screenshot saved: {path}")
            return path
        except WebDriverException as e:
            logger.error(f"Error taking screenshot: {e}")
            return None

    def get_current_url(self) -> Optional[str]:
        return self.driver.current_url if self.driver else None

    def get_page_content(self) -> Optional[str]:
        return self.driver.page_source if self.driver else None

    def auto_submit(self, url: str, form_data: ApplicationFormData) -> Dict[str, Any]:
        """
        Navigate, fill and (when enabled) submit an application form

        Returns:
            Dictionary with success, filled, submitted, url and error keys
        """
        result: Dict[str, Any] = {
            "success": False,
            "filled": False,
            "submitted": False,
            "url": url,
            "error": None,
            "checked_at": utcnow().isoformat(),
        }
        try:
            if not self.navigate_to_job_application(url):
                result["error"] = "Failed to navigate to application page"
                return result

            result["filled"] = self.fill_application_form(form_data)
            if self.submit_application():
                result["submitted"] = True
                result["success"] = self.check_application_success()
            result["url"] = self.get_current_url() or url
            return result
        except BrowserAutomationError as e:
            result["error"] = str(e)
            return result
        finally:
            self.close_browser()
