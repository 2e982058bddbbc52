"""Single-page participant client served at ``/``."""

PARTICIPANT_PAGE_HTML = """<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <title>Trivia Rush</title>
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <style>
      :root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
      body { margin: 0 auto; max-width: 42rem; padding: 1.5rem; display: flex; flex-direction: column; gap: 1rem; }
      .card { background: #111a30; border-radius: 0.75rem; padding: 1.5rem; box-shadow: 0 0.5rem 1.5rem rgba(0, 0, 0, 0.4); }
      .hidden { display: none; }
      input { width: 100%; box-sizing: border-box; padding: 0.7rem; margin: 0.3rem 0 0.8rem; border-radius: 0.5rem; border: 1px solid #334155; background: #0b1120; color: #f5f7ff; }
      .primary-button { border: none; border-radius: 0.75rem; padding: 0.85rem 1.5rem; font-size: 1rem; background: #1f9aa5; color: #fff; cursor: pointer; }
      .primary-button:disabled { opacity: 0.6; cursor: not-allowed; }
      .header-row { display: flex; justify-content: space-between; font-size: 0.95rem; color: #94a3b8; }
      .timer-track { background: #1e293b; border-radius: 999px; height: 0.6rem; overflow: hidden; margin-top: 0.4rem; }
      #timer-fill { background: #1f9aa5; height: 100%; transform-origin: left; transition: transform 900ms linear; }
      #timer-fill.low { background: #facc15; }
      .options-grid { display: grid; gap: 0.75rem; }
      .option-button { text-align: left; border: 2px solid #334155; border-radius: 0.75rem; padding: 0.9rem 1rem; background: #0f172a; color: #f5f7ff; font-size: 1rem; cursor: pointer; }
      .option-button.correct { border-color: #4ade80; }
      .option-button.wrong { border-color: #f87171; }
      #feedback { font-weight: 600; min-height: 1.5rem; }
      table { width: 100%; border-collapse: collapse; }
      td { padding: 0.35rem 0.25rem; border-bottom: 1px solid #1e293b; }
    </style>
  </head>
  <body>
    <section class=\"card\" id=\"register-card\">
      <h1 id=\"quiz-title\">Trivia Rush</h1>
      <p id=\"quiz-description\"></p>
      <label>Full name <input id=\"full-name\" /></label>
      <label>Employee ID <input id=\"employee-id\" /></label>
      <label>Department <input id=\"department\" /></label>
      <button id=\"start-button\" class=\"primary-button\">Start quiz</button>
      <p id=\"register-status\"></p>
    </section>
    <section class=\"card hidden\" id=\"quiz-card\">
      <div class=\"header-row\"><span id=\"progress\"></span><span id=\"score\"></span></div>
      <div class=\"header-row\"><span>Time</span><span id=\"timer-label\"></span></div>
      <div class=\"timer-track\"><div id=\"timer-fill\"></div></div>
      <p id=\"feedback\"></p>
      <div id=\"question-container\"></div>
      <div id=\"options-container\" class=\"options-grid\"></div>
    </section>
    <section class=\"card hidden\" id=\"result-card\">
      <h2>Quiz complete</h2>
      <p id=\"result-summary\"></p>
      <p id=\"result-position\"></p>
    </section>
    <section class=\"card\" id=\"leaderboard-card\">
      <h2>Leaderboard</h2>
      <table><tbody id=\"leaderboard-body\"></tbody></table>
    </section>
    <script>
      const $ = (id) => document.getElementById(id);
      let pollHandle = null;
      let renderedQuestion = null;

      function show(id, visible) { $(id).classList.toggle('hidden', !visible); }

      async function loadQuizInfo() {
        const response = await fetch('/quiz');
        const quiz = await response.json();
        $('quiz-title').textContent = quiz.name;
        $('quiz-description').textContent = `${quiz.description || ''} (${quiz.question_count} questions)`;
      }

      async function startQuiz() {
        $('start-button').disabled = true;
        $('register-status').textContent = 'Registering…';
        const body = {
          full_name: $('full-name').value,
          employee_id: $('employee-id').value,
          department: $('department').value,
        };
        let response = await fetch('/participants', {
          method: 'POST', headers: { 'Content-Type': 'application/json' }, body: JSON.stringify(body)
        });
        if (response.ok) {
          response = await fetch('/session', { method: 'POST' });
        }
        if (!response.ok) {
          const payload = await response.json().catch(() => ({}));
          $('register-status').textContent = payload.detail || 'Unable to start. Try again.';
          $('start-button').disabled = false;
          return;
        }
        show('register-card', false);
        show('quiz-card', true);
        render(await response.json());
        pollHandle = setInterval(refreshSession, 500);
      }

      async function refreshSession() {
        const response = await fetch('/session');
        if (!response.ok) { return; }
        render(await response.json());
      }

      function render(view) {
        if (view.status === 'completed') {
          clearInterval(pollHandle);
          showResult();
          return;
        }
        if (!view.question) { return; }
        $('progress').textContent = `${view.question_index + 1}/${view.total_questions}`;
        $('score').textContent = `${view.total_score} pts`;
        $('timer-label').textContent = `${view.remaining_seconds}s`;
        const fraction = view.time_limit_seconds ? view.remaining_seconds / view.time_limit_seconds : 0;
        $('timer-fill').style.transform = `scaleX(${fraction})`;
        $('timer-fill').classList.toggle('low', view.remaining_seconds <= 5);

        const answered = view.phase !== 'unanswered';
        if (renderedQuestion !== view.question_index) {
          renderedQuestion = view.question_index;
          $('question-container').innerHTML = view.question.text_html;
          $('options-container').innerHTML = '';
          view.question.options.forEach((option) => {
            const button = document.createElement('button');
            button.className = 'option-button';
            button.dataset.key = option.key;
            button.innerHTML = `<strong>${option.key}.</strong> ${option.text_html}`;
            button.addEventListener('click', () => submitAnswer(option.key));
            $('options-container').appendChild(button);
          });
          $('feedback').textContent = '';
        }
        document.querySelectorAll('.option-button').forEach((button) => {
          button.disabled = answered;
          button.classList.toggle('correct', answered && button.dataset.key === view.question.correct_option);
          button.classList.toggle('wrong', answered && view.last_answer && button.dataset.key === view.last_answer.selected_option && !view.last_answer.is_correct);
        });
        if (answered && view.last_answer && view.last_answer.question_index === view.question_index) {
          const last = view.last_answer;
          if (last.is_correct) {
            $('feedback').textContent = `Correct! +${last.points_earned} pts`;
          } else {
            const reason = last.selected_option === 'TIMEOUT' ? 'Time is up!' : 'Incorrect!';
            const reveal = view.question.correct_option ? ` Answer: ${view.question.correct_option}` : '';
            $('feedback').textContent = reason + reveal;
          }
        }
      }

      async function submitAnswer(key) {
        const response = await fetch('/session/answer', {
          method: 'POST', headers: { 'Content-Type': 'application/json' }, body: JSON.stringify({ option: key })
        });
        if (response.ok) { render(await response.json()); }
      }

      async function showResult() {
        show('quiz-card', false);
        show('result-card', true);
        const response = await fetch('/result');
        if (!response.ok) { return; }
        const result = await response.json();
        const percentage = Math.round((result.correct_count / result.total_questions) * 100);
        $('result-summary').textContent = `${result.total_score} points, ${result.correct_count}/${result.total_questions} correct (${percentage}%)`;
        $('result-position').textContent = result.position ? `Leaderboard position: #${result.position}` : '';
        refreshLeaderboard();
      }

      async function refreshLeaderboard() {
        const response = await fetch('/leaderboard?limit=10');
        if (!response.ok) { return; }
        const payload = await response.json();
        $('leaderboard-body').innerHTML = '';
        payload.rows.forEach((row) => {
          const tr = document.createElement('tr');
          [`#${row.position}`, row.full_name, row.department, `${row.total_score} pts`].forEach((value) => {
            const td = document.createElement('td');
            td.textContent = value;
            tr.appendChild(td);
          });
          $('leaderboard-body').appendChild(tr);
        });
      }

      $('start-button').addEventListener('click', startQuiz);
      loadQuizInfo();
      refreshLeaderboard();
      setInterval(refreshLeaderboard, 3000);
    </script>
  </body>
</html>
"""
